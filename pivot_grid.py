"""
Grid model produced by the table renderer.

Nothing in here knows about HTML: a grid is a list of header rows and a list
of body rows made of cells, which the web adapter turns into markup.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class CellKind(Enum):
    EMPTY = "empty"
    HEADER_DIMENSION_LABEL = "header_dimension_label"
    HEADER_CATEGORY_LABEL = "header_category_label"
    ROW_CATEGORY_LABEL = "row_category_label"
    VALUE = "value"


class Scope(Enum):
    COL = "col"
    COLGROUP = "colgroup"
    ROW = "row"
    ROWGROUP = "rowgroup"


@dataclass
class Cell:
    """A single table cell with optional spans and header scope."""
    kind: CellKind
    text: str = ""
    col_span: Optional[int] = None
    row_span: Optional[int] = None
    scope: Optional[Scope] = None

    @property
    def is_header(self) -> bool:
        return self.kind is not CellKind.VALUE

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'text': self.text,
            'col_span': self.col_span,
            'row_span': self.row_span,
            'scope': self.scope.value if self.scope else None,
        }


@dataclass
class LayoutConfig:
    """
    How the dimensions are split between rows and columns.

    num_row_dims counts the leading non-constant dimensions placed on the row
    axis, the remaining non-constant dimensions go to the column axis.
    """
    num_row_dims: int = 1
    no_label_last_dim: bool = False
    use_row_spans: bool = True
    # only used without row spans: blank the label on rows inside a group
    blank_repeated_labels: bool = False


@dataclass
class Grid:
    header_rows: List[List[Cell]] = field(default_factory=list)
    body_rows: List[List[Cell]] = field(default_factory=list)
    caption: str = ""
    constants: List[Tuple[str, str]] = field(default_factory=list)
    num_label_cols: int = 0
    num_value_cols: int = 1

    @property
    def empty(self) -> bool:
        return len(self.body_rows) == 0

    def to_dict(self):
        """JSON friendly representation"""
        return {
            'caption': self.caption,
            'constants': [list(pair) for pair in self.constants],
            'num_label_cols': self.num_label_cols,
            'num_value_cols': self.num_value_cols,
            'header_rows': [[cell.to_dict() for cell in row] for row in self.header_rows],
            'body_rows': [[cell.to_dict() for cell in row] for row in self.body_rows],
        }


def layout_to_dict(config):
    return asdict(config)
