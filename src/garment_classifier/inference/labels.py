"""Class index to label lookup for the color and type models."""

from dataclasses import dataclass
from typing import Tuple

from garment_classifier.exceptions import UnknownClassIndexError


@dataclass(frozen=True)
class LabelTable:
    """
    Fixed, ordered label table for one model.

    Attributes:
        name: Table identifier used in errors and logs
        labels: Labels in class index order
    """

    name: str
    labels: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.labels)

    def label_for(self, index: int, strict: bool = True) -> str:
        """
        Map a class index to its label.

        Args:
            index: Class index predicted by the model
            strict: Raise on an out-of-range index instead of falling back
                to the last label

        Returns:
            Label string

        Raises:
            UnknownClassIndexError: If strict and index is out of range

        Example:
            >>> COLOR_LABELS.label_for(3)
            'Green'
            >>> COLOR_LABELS.label_for(42, strict=False)
            'Yellow'
        """
        if 0 <= index < len(self.labels):
            return self.labels[index]

        if strict:
            raise UnknownClassIndexError(index, self.name, len(self.labels))

        return self.labels[-1]


COLOR_LABELS = LabelTable(
    name="color",
    labels=(
        "Black",
        "Blue",
        "Brown",
        "Green",
        "Grey",
        "Pink",
        "Red",
        "White",
        "Yellow",
    ),
)

TYPE_LABELS = LabelTable(
    name="type",
    labels=(
        "T-shirt/Top",
        "Trouser",
        "Pullover",
        "Dress",
        "Shirt",
    ),
)

LABEL_TABLES: dict[str, LabelTable] = {
    "color": COLOR_LABELS,
    "type": TYPE_LABELS,
}
