import random
import unittest

import core
from core import DIRECTION


def total(board):
    return sum(sum(row) for row in board)


class TestReduceLine(unittest.TestCase):

    def test_four_equal_tiles_merge_pairwise(self):
        self.assertEqual(core.reduce_line([2, 2, 2, 2]), ([4, 4, 0, 0], 8))

    def test_gaps_are_closed_before_merging(self):
        self.assertEqual(core.reduce_line([0, 2, 0, 2]), ([4, 0, 0, 0], 4))

    def test_merged_tile_does_not_merge_again(self):
        self.assertEqual(core.reduce_line([4, 2, 2, 4]), ([4, 4, 4, 0], 4))
        self.assertEqual(core.reduce_line([2, 2, 4, 0]), ([4, 4, 0, 0], 4))

    def test_leftmost_pair_wins_in_triple(self):
        self.assertEqual(core.reduce_line([0, 8, 8, 8]), ([16, 8, 0, 0], 16))

    def test_no_merge_line_only_compresses(self):
        self.assertEqual(core.reduce_line([0, 2, 0, 4]), ([2, 4, 0, 0], 0))
        self.assertEqual(core.reduce_line([0, 0, 0, 0]), ([0, 0, 0, 0], 0))

    def test_input_line_is_not_mutated(self):
        line = [2, 2, 0, 0]
        core.reduce_line(line)
        self.assertEqual(line, [2, 2, 0, 0])

    def test_result_is_compressed(self):
        rng = random.Random(7)
        for _ in range(200):
            line = [rng.choice([0, 0, 2, 4, 8]) for _ in range(4)]
            reduced, gained = core.reduce_line(line)
            self.assertEqual(len(reduced), 4)
            self.assertGreaterEqual(gained, 0)
            nonzero = [v for v in reduced if v]
            self.assertEqual(reduced, nonzero + [0] * (4 - len(nonzero)))
            self.assertEqual(sum(reduced), sum(line))


class TestProcessMove(unittest.TestCase):

    def setUp(self):
        self.board = [
            [2, 2, 0, 0],
            [4, 0, 4, 0],
            [0, 0, 0, 0],
            [2, 2, 2, 2]
        ]

    def test_move_left(self):
        outcome = core.process_move(self.board, DIRECTION.LEFT)
        self.assertEqual(outcome.board, [
            [4, 0, 0, 0],
            [8, 0, 0, 0],
            [0, 0, 0, 0],
            [4, 4, 0, 0]
        ])
        self.assertEqual(outcome.score_delta, 4 + 8 + 8)
        self.assertTrue(outcome.changed)

    def test_move_right(self):
        outcome = core.process_move(self.board, DIRECTION.RIGHT)
        self.assertEqual(outcome.board, [
            [0, 0, 0, 4],
            [0, 0, 0, 8],
            [0, 0, 0, 0],
            [0, 0, 4, 4]
        ])

    def test_move_up(self):
        board = [
            [2, 0, 0, 4],
            [2, 0, 0, 0],
            [0, 0, 8, 4],
            [4, 0, 0, 0]
        ]
        outcome = core.process_move(board, DIRECTION.UP)
        self.assertEqual(outcome.board, [
            [4, 0, 8, 8],
            [4, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0]
        ])
        self.assertEqual(outcome.score_delta, 12)

    def test_move_down(self):
        board = [
            [2, 0, 0, 0],
            [2, 0, 0, 0],
            [4, 0, 0, 0],
            [4, 0, 0, 2]
        ]
        outcome = core.process_move(board, DIRECTION.DOWN)
        self.assertEqual([row[0] for row in outcome.board], [0, 0, 4, 8])
        self.assertEqual(outcome.board[3][3], 2)
        self.assertEqual(outcome.score_delta, 12)

    def test_blocked_move_reports_unchanged(self):
        board = [
            [2, 4, 0, 0],
            [4, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0]
        ]
        outcome = core.process_move(board, DIRECTION.LEFT)
        self.assertFalse(outcome.changed)
        self.assertEqual(outcome.score_delta, 0)
        self.assertEqual(outcome.board, board)

    def test_input_board_is_not_mutated(self):
        before = core.copy_board(self.board)
        core.process_move(self.board, DIRECTION.DOWN)
        self.assertEqual(self.board, before)

    def test_value_is_conserved_up_to_score_delta(self):
        rng = random.Random(3)
        for _ in range(100):
            board = [[rng.choice([0, 2, 2, 4, 8]) for _ in range(4)] for _ in range(4)]
            for direction in DIRECTION:
                outcome = core.process_move(board, direction)
                # merging a+a into 2a keeps the sum; the score grows by 2a
                self.assertEqual(total(outcome.board), total(board))
                self.assertEqual(outcome.changed, outcome.board != board)

    def test_order_of_unmerged_tiles_is_preserved(self):
        board = [
            [8, 0, 4, 2],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0]
        ]
        self.assertEqual(core.process_move(board, DIRECTION.LEFT).board[0], [8, 4, 2, 0])
        self.assertEqual(core.process_move(board, DIRECTION.RIGHT).board[0], [0, 8, 4, 2])

    def test_invalid_direction_raises(self):
        with self.assertRaises(core.InvalidDirection):
            core.process_move(self.board, "sideways")

    def test_non_square_board_raises(self):
        with self.assertRaises(ValueError):
            core.process_move([[2, 0], [0]], DIRECTION.LEFT)


class TestParseDirection(unittest.TestCase):

    def test_symbols_are_case_insensitive(self):
        self.assertEqual(core.parse_direction("Up"), DIRECTION.UP)
        self.assertEqual(core.parse_direction("DOWN"), DIRECTION.DOWN)
        self.assertEqual(core.parse_direction(DIRECTION.LEFT), DIRECTION.LEFT)

    def test_unknown_symbol(self):
        for symbol in ("north", "", None, 3):
            with self.assertRaises(core.InvalidDirection):
                core.parse_direction(symbol)


class TestHasMoves(unittest.TestCase):

    def test_full_board_without_pairs_is_terminal(self):
        board = [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [4, 2, 4, 2]
        ]
        self.assertFalse(core.has_moves(board))

    def test_empty_cell_allows_move(self):
        board = [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [4, 2, 4, 0]
        ]
        self.assertTrue(core.has_moves(board))

    def test_pair_in_last_row(self):
        board = [
            [2, 4, 2, 4],
            [4, 2, 4, 2],
            [2, 4, 2, 4],
            [4, 2, 8, 8]
        ]
        self.assertTrue(core.has_moves(board))

    def test_pair_in_last_column(self):
        board = [
            [2, 4, 2, 4],
            [4, 2, 4, 16],
            [2, 4, 2, 16],
            [4, 2, 4, 2]
        ]
        self.assertTrue(core.has_moves(board))

    def test_agrees_with_move_engine(self):
        rng = random.Random(11)
        for _ in range(300):
            board = [[rng.choice([2, 4, 8, 16]) for _ in range(4)] for _ in range(4)]
            any_change = any(core.process_move(board, d).changed for d in DIRECTION)
            self.assertEqual(core.has_moves(board), any_change)


class TestAddRandomTile(unittest.TestCase):

    def test_spawns_into_empty_cell(self):
        board = core.empty_board()
        new_board, added = core.add_random_tile(board, random.Random(1))
        self.assertTrue(added)
        self.assertEqual(total(board), 0)
        self.assertEqual(len(core.get_empty_cells(new_board)), 15)
        self.assertIn(total(new_board), (2, 4))

    def test_full_board_is_noop(self):
        board = [[2] * 4 for _ in range(4)]
        new_board, added = core.add_random_tile(board, random.Random(1))
        self.assertFalse(added)
        self.assertEqual(new_board, board)

    def test_same_seed_same_spawn(self):
        board = core.empty_board()
        first, _ = core.add_random_tile(board, random.Random(42))
        second, _ = core.add_random_tile(board, random.Random(42))
        self.assertEqual(first, second)

    def test_four_is_drawn_below_threshold(self):
        class FixedRandom(random.Random):
            def random(self):
                return 0.05

        board, _ = core.add_random_tile(core.empty_board(), FixedRandom(0))
        self.assertEqual(total(board), 4)

    def test_initialize_board_has_two_tiles(self):
        board = core.initialize_board(4, random.Random(5))
        self.assertEqual(len(core.get_empty_cells(board)), 14)

    def test_initialize_board_rejects_bad_size(self):
        for size in (0, -1, "4"):
            with self.assertRaises(ValueError):
                core.initialize_board(size)


class TestSetCell(unittest.TestCase):

    def test_top_left_from_bottom_left_origin(self):
        board = core.set_cell(core.empty_board(), 32, 0, 3)
        self.assertEqual(board[0][0], 32)
        self.assertEqual(total(board), 32)

    def test_bottom_right(self):
        board = core.set_cell(core.empty_board(), 2, 3, 0)
        self.assertEqual(board[3][3], 2)

    def test_rejects_bad_values(self):
        for value in (0, 1, 3, 6, 65536, 2.0, "8", True):
            with self.assertRaises(core.InvalidDebugValue):
                core.set_cell(core.empty_board(), value, 0, 0)

    def test_rejects_bad_coordinates(self):
        for x, y in ((-1, 0), (4, 0), (0, 4), (1.5, 0), (0, None)):
            with self.assertRaises(core.InvalidDebugCoordinate):
                core.set_cell(core.empty_board(), 2, x, y)

    def test_original_board_untouched(self):
        board = core.empty_board()
        core.set_cell(board, 2, 0, 0)
        self.assertEqual(total(board), 0)


class TestValidateBoard(unittest.TestCase):

    def test_accepts_legal_board(self):
        self.assertEqual(core.validate_board([[0, 2], [4, 2048]]), 2)

    def test_rejects_illegal_values(self):
        for value in (1, 3, -2, 2.5):
            with self.assertRaises(ValueError):
                core.validate_board([[0, value], [0, 0]])

    def test_check_for_win(self):
        self.assertTrue(core.check_for_win([[2048, 0], [0, 0]]))
        self.assertFalse(core.check_for_win([[1024, 0], [0, 0]]))
        self.assertTrue(core.check_for_win([[64, 0], [0, 0]], win_tile=64))


if __name__ == "__main__":
    unittest.main()
