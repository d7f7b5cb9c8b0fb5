from typing import Protocol, Sequence

from ..data.base import EncodedImagePart

class EstimationModel(Protocol):
    name: str

    async def request(self, parts: Sequence[EncodedImagePart], prompt: str) -> str:
        """
        One call to the generative model with the prompt followed by the
        images in order. Returns the raw response text, unparsed.
        """
        ...
