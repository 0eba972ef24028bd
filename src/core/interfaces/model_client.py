"""
Contract: Model Client

Sends a prompt (optionally with one inline image or document) to a
hosted large language model and returns its raw text reply.
"""

from abc import ABC, abstractmethod

from src.core.entities.document import InlineAttachment


class IModelClient(ABC):
    """
    Port: Model Client

    Implementations own credential fallback. They never raise: a reply
    of None means every configured credential failed.
    """

    @abstractmethod
    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        attachment: InlineAttachment | None = None,
    ) -> str | None:
        """
        Run one completion.

        Args:
            prompt: User prompt text.
            system_prompt: Optional system instruction.
            attachment: Optional base64 image/document for multimodal input.

        Returns:
            Raw reply text, or None if the model is unavailable.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        ...
