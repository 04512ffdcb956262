"""
Lays out json-stat data as a pivot table.

A table consists of a number of dimensions that define the rows of the table
(shown in the label columns) and a number of dimensions that define the
columns of the table (the value columns). LayoutConfig.num_row_dims decides
where the non-constant dimensions are split between the two axes.

The renderer produces a Grid; turning the grid into markup is left to the
caller (see templates/index.html).
"""

import logging
from typing import List, Optional

import pandas as pd

from jsonstat_reader import JsonStat
from pivot_errors import InvalidLayoutError
from pivot_grid import Cell, CellKind, Grid, LayoutConfig, Scope
from util_array import product, product_upper_next

logger = logging.getLogger(__name__)


class RendererTable:
    """Pivot layout engine for a json-stat reader."""

    def __init__(self, reader: JsonStat, config: Optional[LayoutConfig] = None):
        self.reader = reader
        self.config = config if config is not None else LayoutConfig()
        self._reset()

    def _reset(self):
        self.row_dims: List[int] = []
        self.col_dims: List[int] = []
        self.row_dim_indices: List[int] = []
        self.col_dim_indices: List[int] = []
        self.num_constant_dims = 0
        self.num_value_cols = 1
        self.num_label_cols = 0
        self.num_header_rows = 1

    def init(self):
        """Cache the numbers used while building the table"""
        self._reset()
        sizes = self.reader.sizes
        non_constant = [i for i, size in enumerate(sizes) if size > 1]
        num_row_dims = self.config.num_row_dims

        if not 0 <= num_row_dims <= len(non_constant):
            raise InvalidLayoutError(
                "Number of row dimensions out of range",
                {'num_row_dims': num_row_dims, 'max': len(non_constant)}
            )

        self.row_dim_indices = non_constant[:num_row_dims]
        self.col_dim_indices = non_constant[num_row_dims:]
        self.row_dims = [sizes[i] for i in self.row_dim_indices]
        self.col_dims = [sizes[i] for i in self.col_dim_indices]

        split = self.col_dim_indices[0] if self.col_dim_indices else len(sizes)
        self.num_constant_dims = sum(1 for size in sizes[:split] if size == 1)
        self.num_value_cols = product(self.col_dims)
        self.num_label_cols = len(self.row_dims)
        self.num_header_rows = len(self.col_dims) * 2 if self.col_dims else 1

        logger.debug(
            f"Layout: row dims {self.row_dims}, col dims {self.col_dims}, "
            f"{self.num_value_cols} value cols, {self.num_header_rows} header rows"
        )

    def render(self, config: Optional[LayoutConfig] = None) -> Grid:
        """Build a fresh grid for the current (or the passed) layout"""
        if config is not None:
            self.config = config
        self.init()

        grid = Grid(
            header_rows=self.build_header_rows(),
            body_rows=self.build_body_rows(),
            caption=self.reader.caption,
            constants=[
                (self.reader.label(i), self.reader.category_label(i, 0))
                for i in self.reader.constant_dimensions()
            ],
            num_label_cols=self.num_label_cols,
            num_value_cols=self.num_value_cols,
        )
        logger.debug(f"Rendered {len(grid.header_rows)} header rows and {len(grid.body_rows)} body rows")
        return grid

    def build_header_rows(self) -> List[List[Cell]]:
        rows = []
        for row_idx in range(self.num_header_rows):
            # the row with the label of the last column dimension
            if self.config.no_label_last_dim and row_idx == self.num_header_rows - 2:
                continue
            rows.append(self.header_label_cells(row_idx) + self.header_value_cells(row_idx))
        return rows

    def header_label_cells(self, row_idx: int) -> List[Cell]:
        """Cells above the label columns, the last header row names the row dimensions"""
        cells = []
        for k in range(self.num_label_cols):
            if row_idx == self.num_header_rows - 1:
                label = self.reader.label(self.row_dim_indices[k])
                cells.append(Cell(CellKind.HEADER_DIMENSION_LABEL, label, scope=Scope.COL))
            else:
                cells.append(Cell(CellKind.EMPTY))
        return cells

    def header_value_cells(self, row_idx: int) -> List[Cell]:
        """
        Cells above the value columns.

        Each column dimension takes two header rows: the even one shows the
        dimension label, the odd one its category labels. Repeated labels are
        merged into one cell spanning the group.
        """
        if not self.col_dims:
            return [Cell(CellKind.EMPTY)]

        level = row_idx // 2
        dim_idx = self.col_dim_indices[level]
        outer, inner = product_upper_next(self.col_dims, level)

        cells = []
        i = 0
        while i < self.num_value_cols:
            if row_idx % 2 == 0:
                kind = CellKind.HEADER_DIMENSION_LABEL
                text = self.reader.label(dim_idx)
                group_size = outer
            else:
                kind = CellKind.HEADER_CATEGORY_LABEL
                text = self.reader.category_label(dim_idx, i % outer // inner)
                group_size = inner

            if group_size > 1:
                cells.append(Cell(kind, text, col_span=group_size, scope=Scope.COLGROUP))
            else:
                cells.append(Cell(kind, text, scope=Scope.COL))
            i += group_size
        return cells

    def build_body_rows(self) -> List[List[Cell]]:
        rows = []
        row = None
        values = self.reader.values
        for offset in range(self.reader.num_values()):
            if offset % self.num_value_cols == 0:
                # body rows are counted on their own, skipped header rows do not shift them
                row = self.label_cells(offset // self.num_value_cols)
                rows.append(row)
            row.append(self.value_cell(values[offset]))
        return rows

    def label_cells(self, row_idx: int) -> List[Cell]:
        """Row label cells for the body row row_idx"""
        cells = []
        for i in range(self.num_label_cols):
            outer, inner = product_upper_next(self.row_dims, i)
            cat_idx = row_idx % outer // inner
            first_of_group = row_idx % inner == 0

            if self.config.use_row_spans:
                if not first_of_group:
                    continue
                label = self.reader.category_label(self.row_dim_indices[i], cat_idx)
                if inner > 1:
                    cells.append(Cell(CellKind.ROW_CATEGORY_LABEL, label, row_span=inner, scope=Scope.ROWGROUP))
                else:
                    cells.append(Cell(CellKind.ROW_CATEGORY_LABEL, label, scope=Scope.ROW))
            elif first_of_group or not self.config.blank_repeated_labels:
                label = self.reader.category_label(self.row_dim_indices[i], cat_idx)
                cells.append(Cell(CellKind.ROW_CATEGORY_LABEL, label, scope=Scope.ROW))
            else:
                cells.append(Cell(CellKind.EMPTY))
        return cells

    @staticmethod
    def value_cell(value) -> Cell:
        return Cell(CellKind.VALUE, RendererTable.format_value(value))

    @staticmethod
    def format_value(value) -> str:
        """Values are numbers, rendered as plain text without escaping"""
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return ''
        return str(value)
