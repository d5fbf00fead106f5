import pytest

from snake_puzzle.config import settings
from snake_puzzle.models import ALL_DIRECTIONS, Direction, Point
from snake_puzzle.services.board_shape import MaskBoardShape
from snake_puzzle.services.generator import (
    FrontierCandidate,
    GameGenerator,
    GenerationContext,
    GenerationParams,
    GeneratorConfig,
    SeededRandom,
    generate_solvable_level,
)
from snake_puzzle.services.geometry import has_clear_los
from snake_puzzle.services.snake_builder import SnakeBuilder
from snake_puzzle.services.solvability import get_free_snakes, is_resolvable, validate_level


def assert_level_invariants(level, max_len, walls=None):
    seen = set()
    for snake in level.snakes:
        assert 1 <= len(snake.body) <= max_len
        for a, b in zip(snake.body, snake.body[1:]):
            assert abs(a.x - b.x) + abs(a.y - b.y) == 1
        for p in snake.body:
            assert 0 <= p.x < level.width and 0 <= p.y < level.height
            assert p not in seen
            if walls is not None:
                assert not walls[p.y][p.x]
            seen.add(p)
    assert is_resolvable(level)


class TestSeededRandom:
    def test_reproducible(self):
        a, b = SeededRandom(7), SeededRandom(7)
        assert [a.next() for _ in range(5)] == [b.next() for _ in range(5)]

    def test_ranges(self):
        rng = SeededRandom(123)
        for _ in range(500):
            assert 0.0 <= rng.next() < 1.0
            assert 2 <= rng.next_int(2, 4) <= 4

    def test_shuffle_returns_permutation(self):
        rng = SeededRandom(1)
        items = list(range(10))
        shuffled = rng.shuffle(items)
        assert sorted(shuffled) == items
        assert items == list(range(10))
        assert rng.choice([]) is None


def test_frontier_key_round_trip():
    candidate = FrontierCandidate(Point(3, 2), Direction.LEFT)
    assert FrontierCandidate.unpack(candidate.pack(7), 7) == candidate


class TestGenerateSolvableLevel:
    def test_small_board(self):
        level = generate_solvable_level(width=5, height=5, max_snake_length=10, seed=1)

        assert level.width == 5
        assert level.height == 5
        assert len(level.snakes) > 0
        assert is_resolvable(level)

    @pytest.mark.parametrize("seed", range(8))
    @pytest.mark.parametrize("width,height,max_len", [(5, 5, 10), (8, 6, 4), (12, 12, 8), (1, 7, 3)])
    def test_invariants(self, seed, width, height, max_len):
        level = generate_solvable_level(width, height, max_len, seed=seed)
        assert (level.width, level.height) == (width, height)
        assert_level_invariants(level, max_len)

    def test_ids_are_unique(self):
        level = generate_solvable_level(10, 10, 5, seed=3)
        ids = [s.id for s in level.snakes]
        assert len(ids) == len(set(ids))

    def test_reproducible_with_seed(self):
        assert generate_solvable_level(9, 9, 6, seed=99) == generate_solvable_level(9, 9, 6, seed=99)

    def test_walls_are_respected(self):
        shape = MaskBoardShape([
            "##....##",
            "#......#",
            "........",
            "...##...",
            "...##...",
            "........",
            "#......#",
            "##....##",
        ])
        walls = shape.get_walls(8, 8)
        for seed in range(5):
            level = generate_solvable_level(8, 8, 6, board_shape=shape, seed=seed)
            assert level.snakes
            assert_level_invariants(level, 6, walls)
            assert validate_level(level, walls=walls)["valid"]

    def test_fully_walled_board_gives_empty_level(self):
        progress = []
        level = generate_solvable_level(
            3, 3, 4, board_shape=MaskBoardShape(["###"] * 3), on_progress=progress.append, seed=5
        )
        assert level.snakes == ()
        assert progress == [0.0]

    def test_removing_any_free_snake_keeps_level_resolvable(self):
        level = generate_solvable_level(10, 10, 6, seed=11)
        while level.snakes:
            free = get_free_snakes(level)
            assert free
            for snake in free:
                assert is_resolvable(level.removing_snake(snake.id))
            level = level.removing_snake(free[-1].id)


class TestFillTheBoard:
    def test_fill_extends_initial_phase(self):
        plain = generate_solvable_level(7, 7, 5, seed=21)
        filled = generate_solvable_level(7, 7, 5, fill_the_board=True, seed=21)

        assert filled.snakes[:len(plain.snakes)] == plain.snakes
        assert filled.occupied_cell_count >= plain.occupied_cell_count
        assert_level_invariants(filled, 5)

    def test_fill_respects_walls(self):
        shape = MaskBoardShape([
            "#......#",
            "........",
            "..####..",
            "........",
            "#......#",
        ])
        walls = shape.get_walls(8, 5)
        for seed in range(3):
            plain = generate_solvable_level(8, 5, 4, board_shape=shape, seed=seed)
            filled = generate_solvable_level(8, 5, 4, fill_the_board=True, board_shape=shape, seed=seed)

            assert filled.snakes[:len(plain.snakes)] == plain.snakes
            assert_level_invariants(filled, 4, walls)
            assert validate_level(filled, walls=walls)["valid"]

    def test_fill_at_request_size_limit(self):
        size = settings.API_MAX_FILL_BOARD_SIZE
        level = generate_solvable_level(size, size, 4, fill_the_board=True, seed=1)
        assert (level.width, level.height) == (size, size)
        assert_level_invariants(level, 4)

    def test_fill_clamps_board_size(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILL_BOARD_SIZE", 6)
        level = generate_solvable_level(10, 4, 4, fill_the_board=True, seed=2)
        assert (level.width, level.height) == (6, 4)
        assert_level_invariants(level, 4)

    def test_no_clamp_without_fill(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILL_BOARD_SIZE", 6)
        level = generate_solvable_level(10, 4, 4, seed=2)
        assert (level.width, level.height) == (10, 4)


class TestProgress:
    @pytest.mark.parametrize("fill", [False, True])
    def test_monotonic_and_ends_at_one(self, fill):
        progress = []
        generate_solvable_level(6, 6, 4, fill_the_board=fill, on_progress=progress.append, seed=8)

        assert progress
        assert all(0.0 <= v <= 1.0 for v in progress)
        assert all(a <= b for a, b in zip(progress, progress[1:]))
        assert progress[-1] == 1.0


class TestGameGenerator:
    def test_rejects_bad_straight_preference(self):
        with pytest.raises(ValueError):
            GameGenerator(straight_preference=1.5)
        generator = GameGenerator(straight_preference=0.0)
        with pytest.raises(ValueError):
            generator.set_straight_preference(-0.1)

    def test_generator_rng_used_without_seed(self):
        a = GameGenerator(rng=SeededRandom(5)).generate_solvable_level(GenerationParams(6, 6, 5))
        b = GameGenerator(rng=SeededRandom(5)).generate_solvable_level(GenerationParams(6, 6, 5))
        assert a == b

    def test_straight_preference_extremes_stay_solvable(self):
        for preference in (0.0, 1.0):
            generator = GameGenerator(straight_preference=preference)
            level = generator.generate_solvable_level(GenerationParams(8, 8, 7, seed=4))
            assert_level_invariants(level, 7)


class TestGenerationContext:
    def _assert_frontier_invariant(self, context):
        config = context.config
        for candidate in context.frontier_candidates():
            assert context.is_free(candidate.point)
            assert has_clear_los(candidate.point, candidate.direction, context.occupied, config.width, config.height)

    def test_frontier_invariant_holds_while_placing(self):
        config = GeneratorConfig(width=7, height=7, max_snake_length=4, fill_the_board=False, walls=bytearray(49))
        context = GenerationContext.create(config)
        builder = SnakeBuilder(SeededRandom(17))

        snake = builder.build_first_snake(config, context.occupied)
        while snake is not None:
            context.add_snake(snake)
            self._assert_frontier_invariant(context)
            snake = builder.build_next_snake(context)

        assert context.occupied_count() == sum(context.occupied)

    def test_first_snake_opens_frontier_around_it(self):
        config = GeneratorConfig(width=5, height=5, max_snake_length=1, fill_the_board=False, walls=bytearray(25))
        context = GenerationContext.create(config)
        context.add_snake(SnakeBuilder(SeededRandom(0))._make_snake([Point(2, 2)], Direction.UP))

        points = {c.point for c in context.frontier_candidates()}
        assert points == {Point(2, 1), Point(2, 3), Point(1, 2), Point(3, 2)}
        # (2, 3) looking up is blocked by the snake itself
        assert FrontierCandidate(Point(2, 3), Direction.UP) not in context.frontier_candidates()
        for d in ALL_DIRECTIONS:
            assert FrontierCandidate(Point(2, 2), d) not in context.frontier_candidates()
