"""Tests for the csvgrid Grid."""

import logging
import random

import numpy as np
import pytest

import csvgrid
from csvgrid import Cell, FieldStatus, Grid


def assert_widths_positive(grid):
    for row in range(grid.get_height()):
        assert grid.get_width(row) >= 1


def fail_cell_creation(monkeypatch, after):
    """Make every Cell created after the first ``after`` raise MemoryError."""
    original = Cell.__init__
    calls = []

    def init(self, text=""):
        calls.append(text)
        if len(calls) > after:
            raise MemoryError
        original(self, text)

    monkeypatch.setattr(Cell, "__init__", init)


@pytest.fixture
def abc_grid():
    return Grid.from_rows([["a", "b", "c"], ["d", "e"], ["f"]])


class TestCell:
    """Tests for Cell."""

    def test_default_is_empty(self):
        """Test that a new cell holds the empty string."""
        cell = Cell()
        assert cell.text == ""
        assert cell.length == 0

    def test_length_follows_text(self):
        """Test that length always matches the stored text."""
        cell = Cell("hello")
        assert cell.length == 5
        cell.text = "hi"
        assert cell.length == 2
        cell.clear()
        assert cell.length == 0

    def test_rejects_non_str(self):
        """Test error when storing something other than text."""
        with pytest.raises(csvgrid.GridValidationError):
            Cell(None)

    def test_copy_is_independent(self):
        """Test that a copied cell does not share state."""
        cell = Cell("x")
        clone = cell.copy()
        clone.text = "y"
        assert cell.text == "x"


class TestCreate:
    """Tests for grid creation and teardown."""

    def test_new_grid_is_empty(self):
        """Test the initial state of a grid."""
        grid = csvgrid.create_grid()
        assert grid.get_height() == 0
        assert grid.field_delim == ","
        assert grid.text_delim == '"'
        assert grid.get_width(0) == 0

    def test_destroy_releases_rows(self, abc_grid):
        """Test that destroying a grid drops every row."""
        csvgrid.destroy_grid(abc_grid)
        assert len(abc_grid) == 0

    def test_from_rows_empty_row_gets_one_field(self):
        """Test that an empty source row becomes a one-field row."""
        grid = Grid.from_rows([[], ["a"]])
        assert grid.to_list() == [[""], ["a"]]

    def test_set_delimiters(self):
        """Test changing delimiters."""
        grid = Grid()
        grid.set_field_delim(";")
        grid.set_text_delim("'")
        assert (grid.field_delim, grid.text_delim) == (";", "'")

    def test_set_delimiter_clash(self):
        """Test error when the field delimiter would equal the text delimiter."""
        grid = Grid()
        with pytest.raises(csvgrid.GridValidationError):
            grid.set_field_delim('"')
        assert grid.field_delim == ","


class TestAppendRemove:
    """Tests for the row/field storage primitives."""

    def test_append_row(self):
        """Test that a new row starts with one empty field."""
        grid = Grid()
        grid.append_row()
        assert grid.get_height() == 1
        assert grid.get_width(0) == 1
        assert grid[0, 0] == ""

    def test_append_field(self):
        """Test appending an empty field."""
        grid = Grid()
        grid.append_row()
        grid.append_field(0)
        assert grid.to_list() == [["", ""]]

    def test_append_field_missing_row(self):
        """Test error when appending to a row that does not exist."""
        grid = Grid()
        with pytest.raises(csvgrid.GridIndexError):
            grid.append_field(0)

    def test_remove_last_field(self, abc_grid):
        """Test removing the last field of a row."""
        abc_grid.remove_last_field(0)
        assert abc_grid[0] == ["a", "b"]

    def test_remove_last_field_keeps_one(self, abc_grid):
        """Test that the only field of a row is cleared, not removed."""
        abc_grid.remove_last_field(2)
        assert abc_grid[2] == [""]
        assert abc_grid.get_width(2) == 1

    def test_remove_last_field_missing_row(self, abc_grid):
        """Test that a missing row is ignored."""
        abc_grid.remove_last_field(10)
        assert abc_grid.get_height() == 3

    def test_remove_last_field_zero_width(self, abc_grid):
        """Test error for a row that has lost all its fields."""
        abc_grid._rows[1] = []
        with pytest.raises(csvgrid.GridStateError):
            abc_grid.remove_last_field(1)

    def test_remove_last_row(self, abc_grid):
        """Test removing the final row."""
        abc_grid.remove_last_row()
        assert abc_grid.to_list() == [["a", "b", "c"], ["d", "e"]]

    def test_remove_last_row_empty_grid(self):
        """Test that removing from an empty grid is a no-op."""
        grid = Grid()
        grid.remove_last_row()
        assert grid.get_height() == 0


class TestClear:
    """Tests for clear_field and clear_row."""

    def test_clear_middle_field(self, abc_grid):
        """Test clearing a field in place."""
        abc_grid.clear_field(0, 1)
        assert abc_grid[0] == ["a", "", "c"]

    def test_clear_last_field_removes_it(self, abc_grid):
        """Test that clearing the last of several fields removes it."""
        abc_grid.clear_field(0, 2)
        assert abc_grid[0] == ["a", "b"]

    def test_clear_only_field(self, abc_grid):
        """Test that clearing a row's only field keeps the width at 1."""
        abc_grid.clear_field(2, 0)
        assert abc_grid[2] == [""]

    def test_clear_out_of_range_is_noop(self, abc_grid):
        """Test that clearing a field that does not exist changes nothing."""
        before = abc_grid.to_list()
        abc_grid.clear_field(0, 9)
        abc_grid.clear_field(9, 0)
        assert abc_grid.to_list() == before

    def test_clear_field_twice(self, abc_grid):
        """Test that clearing twice gives the same state as clearing once."""
        once = Grid.from_rows(abc_grid.to_list())
        once.clear_field(1, 0)
        abc_grid.clear_field(1, 0)
        abc_grid.clear_field(1, 0)
        assert abc_grid == once

    def test_clear_row(self, abc_grid):
        """Test clearing a row that is not the last."""
        abc_grid.clear_row(0)
        assert abc_grid.to_list() == [[""], ["d", "e"], ["f"]]

    def test_clear_last_row_removes_it(self, abc_grid):
        """Test that clearing the last row removes it."""
        abc_grid.clear_row(2)
        assert abc_grid.get_height() == 2

    def test_clear_missing_row(self, abc_grid):
        """Test that clearing a missing row is a no-op."""
        abc_grid.clear_row(5)
        assert abc_grid.get_height() == 3


class TestRemove:
    """Tests for remove_row and remove_field."""

    def test_remove_first_row(self, abc_grid):
        """Test that later rows move up."""
        abc_grid.remove_row(0)
        assert abc_grid.get_height() == 2
        assert abc_grid.to_list() == [["d", "e"], ["f"]]

    def test_remove_middle_row(self, abc_grid):
        """Test removing a row between two others."""
        abc_grid.remove_row(1)
        assert abc_grid.to_list() == [["a", "b", "c"], ["f"]]

    def test_remove_only_row(self):
        """Test removing the only row."""
        grid = Grid.from_rows([["x"]])
        grid.remove_row(0)
        assert grid.get_height() == 0

    def test_remove_missing_row(self, abc_grid):
        """Test that removing a missing row is a no-op."""
        abc_grid.remove_row(3)
        assert abc_grid.get_height() == 3

    def test_remove_field(self, abc_grid):
        """Test that later fields move left."""
        abc_grid.remove_field(0, 0)
        assert abc_grid[0] == ["b", "c"]

    def test_remove_only_field(self, abc_grid):
        """Test that removing a row's only field clears it."""
        abc_grid.remove_field(2, 0)
        assert abc_grid[2] == [""]

    def test_remove_missing_field(self, abc_grid):
        """Test that removing a missing field is a no-op."""
        abc_grid.remove_field(1, 2)
        assert abc_grid[1] == ["d", "e"]


class TestCopy:
    """Tests for copy_row and copy_field."""

    def test_copy_row_between_grids(self, abc_grid):
        """Test copying a row into a fresh grid, growing it as needed."""
        dest = Grid()
        csvgrid.copy_row(dest, 2, abc_grid, 0)
        assert dest.to_list() == [[""], [""], ["a", "b", "c"]]

    def test_copy_row_shrinks_destination(self, abc_grid):
        """Test that the destination row takes the source width."""
        abc_grid.copy_row(0, abc_grid, 2)
        assert abc_grid[0] == ["f"]

    def test_copy_row_onto_itself(self, abc_grid):
        """Test copying a row onto itself."""
        abc_grid.copy_row(1, abc_grid, 1)
        assert abc_grid[1] == ["d", "e"]

    def test_copy_row_is_deep(self, abc_grid):
        """Test that later edits to the source do not leak."""
        dest = Grid()
        dest.copy_row(0, abc_grid, 0)
        abc_grid.set_field(0, 0, "changed")
        assert dest[0] == ["a", "b", "c"]

    def test_copy_missing_row_clears_destination(self, abc_grid):
        """Test that copying a missing source row clears the destination."""
        abc_grid.copy_row(0, Grid(), 0)
        assert abc_grid[0] == [""]

    def test_copy_field(self, abc_grid):
        """Test copying one field inside a grid."""
        csvgrid.copy_field(abc_grid, 1, 0, abc_grid, 0, 2)
        assert abc_grid[1] == ["c", "e"]

    def test_copy_field_onto_itself(self, abc_grid):
        """Test that copying a field onto itself changes nothing."""
        abc_grid.copy_field(0, 1, abc_grid, 0, 1)
        assert abc_grid[0] == ["a", "b", "c"]

    def test_copy_field_missing(self, abc_grid):
        """Test error when either field does not exist."""
        with pytest.raises(csvgrid.GridIndexError):
            abc_grid.copy_field(0, 0, abc_grid, 2, 5)
        with pytest.raises(csvgrid.GridIndexError):
            abc_grid.copy_field(7, 0, abc_grid, 0, 0)


class TestSetInsert:
    """Tests for set_field and insert_field."""

    def test_set_existing_field(self, abc_grid):
        """Test overwriting a field."""
        abc_grid.set_field(1, 1, "E")
        assert abc_grid[1] == ["d", "E"]

    def test_set_field_grows_grid(self):
        """Test that set_field creates the rows and fields it needs."""
        grid = Grid()
        grid.set_field(2, 3, "x")
        assert grid.get_height() == 3
        assert grid.get_width(0) == 1
        assert grid.get_width(2) == 4
        assert grid[2, 3] == "x"
        assert_widths_positive(grid)

    def test_set_field_rejects_non_str(self, abc_grid):
        """Test that a bad value leaves the grid untouched."""
        with pytest.raises(csvgrid.GridValidationError):
            abc_grid.set_field(5, 5, 42)
        assert abc_grid.get_height() == 3

    def test_insert_field(self):
        """Test inserting between existing fields."""
        grid = Grid.from_rows([["a", "b", "c"]])
        grid.insert_field(0, 1, "X")
        assert grid[0] == ["a", "X", "b", "c"]

    def test_insert_at_start(self, abc_grid):
        """Test inserting before the first field."""
        abc_grid.insert_field(2, 0, "Z")
        assert abc_grid[2] == ["Z", "f"]

    def test_insert_out_of_range_sets(self, abc_grid):
        """Test that inserting past the end behaves like set_field."""
        abc_grid.insert_field(1, 4, "Y")
        assert abc_grid[1] == ["d", "e", "", "", "Y"]

    def test_negative_coordinates(self, abc_grid):
        """Test error for negative coordinates."""
        with pytest.raises(csvgrid.GridValidationError):
            abc_grid.set_field(-1, 0, "x")
        with pytest.raises(csvgrid.GridValidationError):
            abc_grid.get_width(-1)

    def test_set_field_alloc_failure_leaves_grid(self, monkeypatch, caplog):
        """Test that running out of memory while growing a row changes nothing."""
        grid = Grid.from_rows([["a"]])
        fail_cell_creation(monkeypatch, after=2)
        with caplog.at_level(logging.WARNING, logger="csvgrid.grid"):
            with pytest.raises(csvgrid.GridAllocError):
                grid.set_field(0, 5, "x")
        assert grid.to_list() == [["a"]]
        assert "set_field" in caplog.text

    def test_set_field_alloc_failure_new_rows(self, monkeypatch):
        """Test that rows being added are dropped when memory runs out."""
        grid = Grid.from_rows([["a"], ["b", "c"]])
        fail_cell_creation(monkeypatch, after=3)
        with pytest.raises(MemoryError):
            grid.set_field(6, 1, "x")
        assert grid.to_list() == [["a"], ["b", "c"]]

    def test_copy_row_alloc_failure_leaves_grid(self, abc_grid, monkeypatch):
        """Test that a failed row copy keeps the destination row."""
        before = abc_grid.to_list()
        fail_cell_creation(monkeypatch, after=1)
        with pytest.raises(csvgrid.GridAllocError):
            abc_grid.copy_row(1, abc_grid, 0)
        with pytest.raises(csvgrid.GridAllocError):
            abc_grid.copy_row(7, abc_grid, 0)
        assert abc_grid.to_list() == before


class TestGetField:
    """Tests for bounded field reads."""

    def test_exact_fit(self):
        """Test a read where the text fits."""
        grid = Grid.from_rows([["hello"]])
        assert grid.get_field(0, 0, 6) == ("hello", FieldStatus.OK)

    def test_truncated(self):
        """Test a read that must be truncated."""
        grid = Grid.from_rows([["hello"]])
        result = grid.get_field(0, 0, 2)
        assert result.status == FieldStatus.TRUNCATED
        assert result.text == "h"

    def test_capacity_zero(self):
        """Test a read with no capacity."""
        grid = Grid.from_rows([["hello"]])
        assert grid.get_field(0, 0, 0).status == FieldStatus.CAPACITY_ZERO

    def test_missing_or_empty(self, abc_grid):
        """Test reads of missing and empty fields."""
        assert abc_grid.get_field(9, 0, 10) == ("", FieldStatus.EMPTY)
        abc_grid.clear_field(0, 0)
        assert abc_grid.get_field(0, 0, 10) == ("", FieldStatus.EMPTY)

    def test_field_length(self, abc_grid):
        """Test field length lookups."""
        abc_grid.set_field(0, 0, "four")
        assert abc_grid.get_field_length(0, 0) == 4
        assert abc_grid.get_field_length(0, 9) == 0


class TestWidthInvariant:
    """Every row keeps at least one field through any mutation sequence."""

    def test_mixed_operations(self, abc_grid):
        """Test a long mixed sequence of mutations."""
        abc_grid.remove_field(2, 0)
        abc_grid.clear_field(1, 1)
        abc_grid.clear_field(1, 0)
        abc_grid.remove_last_field(1)
        abc_grid.insert_field(0, 0, "z")
        abc_grid.clear_row(0)
        abc_grid.set_field(5, 2, "q")
        abc_grid.remove_row(3)
        abc_grid.copy_row(1, abc_grid, 4)
        for _ in range(4):
            abc_grid.remove_field(0, 0)
        assert_widths_positive(abc_grid)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_random_operations(self, seed):
        """Test a seeded random mutation sequence, checking after every step."""
        rng = random.Random(seed)
        grid = Grid.from_rows([["a", "b", "c"], ["d", "e"], ["f"]])
        other = Grid.from_rows([["x", "y"], ["z"]])

        operations = [
            lambda r, e: grid.append_row(),
            lambda r, e: grid.append_field(r) if r < grid.get_height() else None,
            lambda r, e: grid.remove_last_field(r),
            lambda r, e: grid.remove_last_row(),
            lambda r, e: grid.clear_field(r, e),
            lambda r, e: grid.clear_row(r),
            lambda r, e: grid.remove_row(r),
            lambda r, e: grid.remove_field(r, e),
            lambda r, e: grid.copy_row(r, grid, e),
            lambda r, e: grid.copy_row(r, other, e),
            lambda r, e: grid.set_field(r, e, f"s{r}{e}"),
            lambda r, e: grid.insert_field(r, e, f"i{r}{e}"),
        ]
        for _ in range(300):
            operation = rng.choice(operations)
            operation(rng.randrange(6), rng.randrange(5))
            assert_widths_positive(grid)


class TestAccess:
    """Tests for Python-level access helpers."""

    def test_getitem(self, abc_grid):
        """Test row and field indexing, including negative indices."""
        assert abc_grid[0] == ["a", "b", "c"]
        assert abc_grid[-1] == ["f"]
        assert abc_grid[0, -1] == "c"
        with pytest.raises(IndexError):
            abc_grid[3]
        with pytest.raises(IndexError):
            abc_grid[1, 2]

    def test_iteration(self, abc_grid):
        """Test iterating over rows."""
        assert list(abc_grid) == [["a", "b", "c"], ["d", "e"], ["f"]]
        assert len(abc_grid) == 3

    def test_get_column(self, abc_grid):
        """Test that missing fields in a column come back empty."""
        assert abc_grid.get_column(1) == ["b", "e", ""]

    def test_to_array(self, abc_grid):
        """Test conversion to a padded numpy array."""
        array = abc_grid.to_array()
        assert array.shape == (3, 3)
        assert array.dtype == object
        assert array[1].tolist() == ["d", "e", ""]
        assert array[2, 0] == "f"

    def test_to_array_empty(self):
        """Test conversion of an empty grid."""
        assert Grid().to_array().shape == (0, 0)
        assert isinstance(Grid().to_array(), np.ndarray)

    def test_equality(self, abc_grid):
        """Test grid comparison."""
        assert abc_grid == Grid.from_rows(abc_grid.to_list())
        assert abc_grid != Grid.from_rows(abc_grid.to_list(), field_delim=";")

    def test_pretty(self):
        """Test the quoted debug rendering."""
        grid = Grid.from_rows([["a", "b"], ["c"]])
        assert grid.pretty() == '"a","b",\n"c",'
