"""Open-path TSP solvers: simulated annealing for ≤10 stops, nearest-neighbour for more."""
import logging
import math
import random
from typing import Protocol

from django.conf import settings

logger = logging.getLogger(__name__)

INFINITY = float("inf")

DEFAULT_ANNEALING_MAX_STOPS = 10
DEFAULT_INITIAL_TEMPERATURE = 1000.0
DEFAULT_COOLING_RATE = 0.995
DEFAULT_STOP_TEMPERATURE = 1.0


class OptimizerError(Exception):
    """Base class for errors raised by the route optimizer."""


class InvalidInputError(OptimizerError, ValueError):
    """The distance matrix or seed route breaks the optimizer's preconditions."""


class ConfigurationError(OptimizerError, ValueError):
    """Annealing constants or the strategy threshold are unusable."""


def route_cost(order: list[int], matrix: list[list[float]]) -> float:
    return sum(matrix[order[i]][order[i + 1]] for i in range(len(order) - 1))


def swap_delta(order: list[int], matrix: list[list[float]], i: int, j: int) -> float:
    """
    Cost change of swapping the stops at positions i and j.

    Only the edges touching either position are summed, so adjacent
    positions share an edge and i == j yields 0.
    """
    if i == j:
        return 0.0

    last = len(order) - 1
    edges = {k for k in (i - 1, i, j - 1, j) if 0 <= k < last}

    before = sum(matrix[order[k]][order[k + 1]] for k in edges)
    swapped = order[:]
    swapped[i], swapped[j] = swapped[j], swapped[i]
    after = sum(matrix[swapped[k]][swapped[k + 1]] for k in edges)
    return after - before


def validate_matrix(matrix: list[list[float]]) -> int:
    """Reject degenerate, non-square, negative or NaN matrices and return N."""
    n = len(matrix)
    if n < 2:
        raise InvalidInputError(f"At least 2 locations are required, got {n}")

    for i, row in enumerate(matrix):
        if not isinstance(row, (list, tuple)):
            raise InvalidInputError(f"Distance matrix row {i} is not a sequence: {row!r}")
        if len(row) != n:
            raise InvalidInputError(
                f"Distance matrix must be square: row {i} has {len(row)} entries, expected {n}"
            )
        for j, value in enumerate(row):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInputError(f"Distance [{i}][{j}] is not a number: {value!r}")
            if math.isnan(value) or value < 0:
                raise InvalidInputError(f"Distance [{i}][{j}] must be non-negative, got {value}")

    return n


def _penalized(matrix: list[list[float]]) -> list[list[float]]:
    """
    Copy of matrix with every unreachable leg priced above any reachable path.

    A route with k unreachable legs then always costs more than one with
    fewer, yet the Metropolis exponent stays finite between such routes.
    """
    n = len(matrix)
    longest = max(
        (v for i, row in enumerate(matrix) for j, v in enumerate(row) if i != j and math.isfinite(v)),
        default=0,
    )
    penalty = (n - 1) * longest + 1
    return [[v if math.isfinite(v) else penalty for v in row] for row in matrix]


def _validate_seed(order: list[int], n: int) -> None:
    if len(order) != n or sorted(order) != list(range(n)) or order[0] != 0:
        raise InvalidInputError(
            f"Seed route must be a permutation of 0..{n - 1} starting at 0, got {order}"
        )


class RouteStrategy(Protocol):
    name: str

    def solve(self, matrix: list[list[float]]) -> tuple[list[int], float]:
        ...


class GreedyConstructor:
    """Nearest-neighbour construction anchored at stop 0."""

    name = "nearest_neighbour"

    def construct(self, matrix: list[list[float]]) -> list[int]:
        n = validate_matrix(matrix)
        visited = [False] * n
        visited[0] = True
        order = [0]

        for _ in range(n - 1):
            current = order[-1]
            # Strict comparison keeps the lowest index on ties, and a fresh
            # start at None lets an all-unreachable row still pick a stop.
            nearest = None
            for candidate in range(n):
                if visited[candidate]:
                    continue
                if nearest is None or matrix[current][candidate] < matrix[current][nearest]:
                    nearest = candidate
            order.append(nearest)
            visited[nearest] = True

        return order

    def solve(self, matrix: list[list[float]]) -> tuple[list[int], float]:
        order = self.construct(matrix)
        return order, route_cost(order, matrix)


class AnnealingRefiner:
    """
    Simulated annealing over stop orders with stop 0 pinned in place.

    Each iteration swaps two random positions from 1..N-1, accepts the
    result by the Metropolis criterion and cools the temperature
    geometrically until it drops to stop_temperature. The best order seen
    during the run is returned, not the final one.
    """

    name = "simulated_annealing"

    def __init__(
        self,
        initial_temperature: float = DEFAULT_INITIAL_TEMPERATURE,
        cooling_rate: float = DEFAULT_COOLING_RATE,
        stop_temperature: float = DEFAULT_STOP_TEMPERATURE,
        rng: random.Random | None = None,
    ):
        if not (math.isfinite(initial_temperature) and initial_temperature > 0):
            raise ConfigurationError(
                f"initial_temperature must be a positive finite number, got {initial_temperature}"
            )
        if not 0 < cooling_rate < 1:
            raise ConfigurationError(
                f"cooling_rate must lie strictly between 0 and 1, got {cooling_rate}"
            )
        if not 0 < stop_temperature < initial_temperature:
            raise ConfigurationError(
                "stop_temperature must be positive and below initial_temperature, "
                f"got {stop_temperature}"
            )

        self.initial_temperature = initial_temperature
        self.cooling_rate = cooling_rate
        self.stop_temperature = stop_temperature
        self.rng = rng if rng is not None else random.Random()

    def refine(
        self, matrix: list[list[float]], initial: list[int]
    ) -> tuple[list[int], float]:
        n = validate_matrix(matrix)
        _validate_seed(initial, n)
        # Unreachable legs are walked with a finite price; the exact cost is
        # taken from the caller's matrix once the run ends.
        priced = _penalized(matrix)

        current = list(initial)
        current_cost = route_cost(current, priced)
        best = current[:]
        best_cost = current_cost
        temperature = self.initial_temperature
        iterations = 0

        while temperature > self.stop_temperature:
            i = self.rng.randrange(1, n)
            j = self.rng.randrange(1, n)

            proposed = current[:]
            proposed[i], proposed[j] = proposed[j], proposed[i]

            proposed_cost = current_cost + swap_delta(current, priced, i, j)

            if proposed_cost < current_cost:
                accepted = True
            else:
                probability = math.exp((current_cost - proposed_cost) / temperature)
                accepted = self.rng.random() < probability

            if accepted:
                current, current_cost = proposed, proposed_cost
                if proposed_cost < best_cost:
                    best, best_cost = proposed[:], proposed_cost

            temperature *= self.cooling_rate
            iterations += 1

        # Incremental sums drift in floating point and unreachable legs carry
        # a finite price above; report the exact cost.
        best_cost = route_cost(best, matrix)
        logger.debug(
            "Annealing finished after %d iterations: cost %s -> %s",
            iterations,
            route_cost(initial, matrix),
            best_cost,
        )
        return best, best_cost

    def solve(self, matrix: list[list[float]]) -> tuple[list[int], float]:
        return self.refine(matrix, list(range(len(matrix))))


class RouteOptimizer:
    """
    Pick a strategy by problem size and return the stop visit order with its cost.

    - ≤ annealing_max_stops stops → simulated annealing seeded with 0..N-1
    - > annealing_max_stops stops → nearest-neighbour construction
    """

    def __init__(
        self,
        annealing_max_stops: int = DEFAULT_ANNEALING_MAX_STOPS,
        refiner: RouteStrategy | None = None,
        constructor: RouteStrategy | None = None,
    ):
        if annealing_max_stops < 0:
            raise ConfigurationError(
                f"annealing_max_stops must not be negative, got {annealing_max_stops}"
            )
        self.annealing_max_stops = annealing_max_stops
        self.refiner = refiner if refiner is not None else AnnealingRefiner()
        self.constructor = constructor if constructor is not None else GreedyConstructor()

    @classmethod
    def from_settings(cls) -> "RouteOptimizer":
        """Build an optimizer from the ROUTE_OPTIMIZER Django setting."""
        options = dict(getattr(settings, "ROUTE_OPTIMIZER", {}))
        max_stops = options.pop("ANNEALING_MAX_STOPS", DEFAULT_ANNEALING_MAX_STOPS)
        refiner = AnnealingRefiner(
            initial_temperature=options.pop("INITIAL_TEMPERATURE", DEFAULT_INITIAL_TEMPERATURE),
            cooling_rate=options.pop("COOLING_RATE", DEFAULT_COOLING_RATE),
            stop_temperature=options.pop("STOP_TEMPERATURE", DEFAULT_STOP_TEMPERATURE),
        )
        if options:
            raise ConfigurationError(
                f"Unknown ROUTE_OPTIMIZER options: {', '.join(sorted(options))}"
            )
        return cls(annealing_max_stops=max_stops, refiner=refiner)

    def select_strategy(self, n: int) -> RouteStrategy:
        if n <= self.annealing_max_stops:
            return self.refiner
        return self.constructor

    def optimize(self, matrix: list[list[float]]) -> tuple[list[int], float]:
        n = validate_matrix(matrix)
        strategy = self.select_strategy(n)
        logger.debug("Optimizing %d stops with %s", n, strategy.name)
        return strategy.solve(matrix)


def optimize(matrix: list[list[float]], **options) -> tuple[list[int], float]:
    """Solve with a fresh RouteOptimizer built from keyword options."""
    return RouteOptimizer(**options).optimize(matrix)
