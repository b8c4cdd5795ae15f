"""Team optimizer service: runs every enabled algorithm and keeps the best partition.

Flow of one optimize() call:
1. Validate the pool against the composition (all violations collected)
2. Build the problem context and the constructive starting solutions
3. Run the enabled algorithms concurrently, each with its own random source
4. Pick the best candidate: complete teams first, then the lowest score
   (ties broken by a fixed algorithm order)
5. Refine the winner with one local search pass
6. Sort teams and players, compute balance metrics and unused players;
   flag the result when no candidate filled every slot

Clean architecture: returns data structures only, no presentation.
"""

import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from loguru import logger
from pydantic import ValidationError

from team_balancer.config import config
from team_balancer.config.settings import TeamBalancerConfig
from team_balancer.config.sports import VOLLEYBALL, SportConfig, validate_sport_config
from team_balancer.domain.common import DiagnosticsSink, DomainError, Result
from team_balancer.domain.models import (
    BalanceMetrics,
    InfeasibleProblemError,
    OptimizationResult,
    Player,
    Solution,
    Team,
    ValidationIssue,
    ValidationReport,
)

from .optimization import (
    AntColonyOptimizer,
    ConstraintProgrammingOptimizer,
    Deadline,
    GeneticAlgorithmOptimizer,
    LocalSearchOptimizer,
    Optimizer,
    ProblemContext,
    SimulatedAnnealingOptimizer,
    SolutionEvaluator,
    TabuSearchOptimizer,
    generate_initial_solutions,
)
from .optimization.evaluation import CustomEvaluation
from .optimization.problem import RatingProvider, default_rating_provider
from .optimization.solution_utils import (
    clone_solution,
    get_unused_players,
    is_feasible,
    shortfalls,
    sort_team_by_position,
)

ALGORITHM_ORDER = [
    GeneticAlgorithmOptimizer.name,
    TabuSearchOptimizer.name,
    SimulatedAnnealingOptimizer.name,
    AntColonyOptimizer.name,
    ConstraintProgrammingOptimizer.name,
]
FALLBACK_LABEL = "Fallback (Initial Solution)"
REFINEMENT_LABEL = "Local Search Refinement"

PlayerInput = Union[Player, Dict[str, Any]]


class TeamOptimizerService:
    """Service splitting a player pool into balanced teams.

    Args:
        sport_config: Role weights, display order and default composition
        settings: Optional configuration override (defaults to the global config)
        rating_provider: Callable (player, role) -> rating; defaults to the
            player's own ratings with 1500 for missing roles
        custom_evaluation: Optional callable (solution, evaluator) -> score
            replacing the default formula
        diagnostics: Optional sink shared across runs; a fresh one is made per
            run otherwise
    """

    def __init__(
        self,
        sport_config: SportConfig = VOLLEYBALL,
        settings: Optional[TeamBalancerConfig] = None,
        rating_provider: Optional[RatingProvider] = None,
        custom_evaluation: Optional[CustomEvaluation] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ):
        self.sport = validate_sport_config(sport_config)
        self._settings = settings
        self.rating_provider = rating_provider or default_rating_provider
        self.custom_evaluation = custom_evaluation
        self._diagnostics = diagnostics
        self.statistics: Dict[str, Dict[str, Any]] = {}

    @property
    def settings(self) -> TeamBalancerConfig:
        return self._settings if self._settings is not None else config

    @property
    def evaluator(self) -> SolutionEvaluator:
        adaptive = self.settings.adaptive
        return SolutionEvaluator(
            self.sport.position_weights,
            variance_weight=adaptive.variance_weight,
            position_balance_weight=adaptive.position_balance_weight,
            custom_evaluation=self.custom_evaluation,
        )

    # ------------------------------------------------------------------
    # Scoring helpers
    # ------------------------------------------------------------------

    def calculate_team_strength(self, team: Team) -> float:
        return self.evaluator.team_strength(team)

    def evaluate_solution(self, solution: Solution) -> float:
        return self.evaluator.score(solution)

    def evaluate_balance(self, solution: Solution) -> BalanceMetrics:
        return self.evaluator.evaluate_balance(solution)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(
        self,
        composition: Optional[Dict[str, int]],
        team_count: int,
        players: Sequence[PlayerInput],
    ) -> ValidationReport:
        """Check the pool can fill every team; collects all violations.

        Args:
            composition: Role -> players per team (defaults to the sport's)
            team_count: Number of teams to build
            players: Player pool

        Returns:
            ValidationReport with errors (blocking) and warnings (advisory)
        """
        composition = dict(
            self.sport.default_composition if composition is None else composition
        )
        pool = _coerce_players(players)
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        if team_count < 1:
            errors.append(
                ValidationIssue(message=f"Team count must be at least 1, got {team_count}")
            )

        for role, count in composition.items():
            if count < 0:
                errors.append(
                    ValidationIssue(
                        role=role,
                        needed=count,
                        message=f"Composition count for {role} cannot be negative",
                    )
                )

        required = {role: count for role, count in composition.items() if count > 0}
        if not required:
            errors.append(
                ValidationIssue(message="Composition must require at least one player")
            )

        ids = [player.id for player in pool]
        duplicates = sorted({pid for pid in ids if ids.count(pid) > 1})
        if duplicates:
            errors.append(
                ValidationIssue(
                    message=f"Duplicate player ids: {', '.join(duplicates)}"
                )
            )

        teams = max(team_count, 0)
        for role, count in required.items():
            needed = count * teams
            available = sum(1 for player in pool if player.can_play(role))
            if available < needed:
                errors.append(
                    ValidationIssue(
                        role=role,
                        needed=needed,
                        available=available,
                        message=f"Not enough {self.sport.display_name(role)}s: "
                        f"need {needed}, have {available}",
                    )
                )
            if role not in self.sport.positions:
                warnings.append(
                    ValidationIssue(
                        role=role,
                        message=f"Role {role} is not defined for {self.sport.name}",
                    )
                )

        total_needed = sum(required.values()) * teams
        unique_players = len(set(ids))
        if unique_players < total_needed:
            errors.append(
                ValidationIssue(
                    needed=total_needed,
                    available=unique_players,
                    message=f"Not enough total players: need {total_needed}, have {unique_players}",
                )
            )

        for player in pool:
            if not any(player.can_play(role) for role in required):
                warnings.append(
                    ValidationIssue(
                        message=f"{player.name} has no role in the composition and will stay unused"
                    )
                )

        return ValidationReport(is_valid=not errors, errors=errors, warnings=warnings)

    # ------------------------------------------------------------------
    # Optimization
    # ------------------------------------------------------------------

    def optimize(
        self,
        composition: Optional[Dict[str, int]],
        team_count: int,
        players: Sequence[PlayerInput],
    ) -> OptimizationResult:
        """Build ``team_count`` balanced teams from the pool.

        Args:
            composition: Role -> players per team (defaults to the sport's)
            team_count: Number of teams
            players: Player pool

        Returns:
            OptimizationResult with the final teams and diagnostics

        Raises:
            InfeasibleProblemError: If validation fails; no search is attempted
        """
        started = time.perf_counter()
        settings = self.settings
        composition = dict(
            self.sport.default_composition if composition is None else composition
        )
        pool = _coerce_players(players)
        self.statistics = {}

        report = self.validate(composition, team_count, pool)
        if not report.is_valid:
            logger.error(f"❌ Validation failed: {'; '.join(report.error_messages())}")
            raise InfeasibleProblemError(report)

        orchestration = settings.orchestration
        diagnostics = self._diagnostics or DiagnosticsSink(
            window_seconds=orchestration.warning_window_seconds
        )
        master_rng = random.Random(orchestration.random_seed)
        context = ProblemContext.build(
            composition,
            team_count,
            pool,
            self.evaluator,
            rating_provider=self.rating_provider,
            generator_settings=settings.generators,
            diagnostics=diagnostics,
            deadline=Deadline(orchestration.time_budget_seconds),
            yield_interval=orchestration.yield_interval,
        )

        logger.info(
            f"🧠 Optimizing {len(pool)} players into {team_count} teams of {context.team_size}"
        )
        initial_solutions = generate_initial_solutions(context, _child_rng(master_rng))
        tasks = self._build_tasks(initial_solutions, master_rng)
        refinement_rng = _child_rng(master_rng)

        candidates = self._run_tasks(context, tasks)
        if not candidates:
            logger.warning("⚠️ All algorithms failed, using first initial solution")
            fallback = clone_solution(initial_solutions[0])
            candidates = [(FALLBACK_LABEL, fallback, context.evaluator.score(fallback))]

        # complete teams beat partial ones; candidates are in fixed algorithm
        # order, so min() breaks ties stably
        label, winner, winner_score = min(
            candidates, key=lambda c: _rank(c[1], c[2], context)
        )
        self._log_performance(candidates, label)

        refiner = LocalSearchOptimizer(
            settings.local_search,
            settings.adaptive,
            refinement_rng,
            initial_solution=winner,
            adaptive_enabled=settings.algorithms.adaptive_swap_enabled,
        )
        refined = refiner.solve(context)
        refined_score = context.evaluator.score(refined)
        self.statistics[REFINEMENT_LABEL] = refiner.statistics.to_dict()
        if _rank(refined, refined_score, context) <= _rank(winner, winner_score, context):
            final, final_score = refined, refined_score
        else:
            final, final_score = winner, winner_score
        logger.info(f"✨ Refinement: {winner_score:.3f} -> {final_score:.3f}")

        final = sorted(final, key=context.evaluator.team_strength, reverse=True)
        final = [sort_team_by_position(team, self.sport.position_order) for team in final]
        feasible = is_feasible(final, composition, team_count)
        if not feasible:
            self._report_partial(final, composition, diagnostics)

        candidate_scores = {c[0]: c[2] for c in candidates}
        candidate_scores["final"] = final_score
        result = OptimizationResult(
            teams=final,
            balance=context.evaluator.evaluate_balance(final),
            unused_players=get_unused_players(final, pool),
            validation=report,
            algorithm=f"{label} + {REFINEMENT_LABEL}",
            feasible=feasible,
            statistics=dict(self.statistics),
            candidate_scores=candidate_scores,
            diagnostics=sorted(
                diagnostics.entries,
                key=lambda d: (d.code, d.role or "", d.team_index or 0, d.message),
            ),
            elapsed_seconds=time.perf_counter() - started,
        )
        logger.info(
            f"✅ Best: {result.algorithm} (difference {result.balance.difference:.2f}, "
            f"{result.elapsed_seconds:.2f}s)"
        )
        return result

    def try_optimize(
        self,
        composition: Optional[Dict[str, int]],
        team_count: int,
        players: Sequence[PlayerInput],
    ) -> Result[OptimizationResult]:
        """Like optimize(), but returns a Result instead of raising."""
        try:
            return Result.success(self.optimize(composition, team_count, players))
        except InfeasibleProblemError as e:
            violations = [issue.model_dump() for issue in e.report.errors]
            # shortages carry supply counts; anything else is malformed input
            if all(issue.available is not None for issue in e.report.errors):
                return Result.failure(DomainError.infeasible_problem(str(e), violations))
            return Result.failure(DomainError.validation_error(str(e), violations=violations))
        except ValidationError as e:
            return Result.failure(DomainError.validation_error(str(e)))
        except ValueError as e:
            return Result.failure(DomainError.configuration_error(str(e)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_tasks(
        self, initial_solutions: List[Solution], master_rng: random.Random
    ) -> List[Tuple[str, Optimizer]]:
        """Instantiate the enabled algorithms in a fixed order.

        Seeds and seed solutions are drawn from ``master_rng`` here, before
        anything runs, so results do not depend on completion order.
        """
        settings = self.settings
        toggles = settings.algorithms
        adaptive = settings.adaptive
        adaptive_enabled = toggles.adaptive_swap_enabled

        use_ga = toggles.use_genetic_algorithm
        use_tabu = toggles.use_tabu_search
        if not toggles.any_enabled:
            logger.warning("⚠️ No algorithms enabled, running Genetic Algorithm and Tabu Search")
            use_ga = use_tabu = True

        tasks: List[Tuple[str, Optimizer]] = []
        if use_ga:
            tasks.append(
                (
                    GeneticAlgorithmOptimizer.name,
                    GeneticAlgorithmOptimizer(
                        settings.genetic,
                        adaptive,
                        _child_rng(master_rng),
                        initial_population=[clone_solution(s) for s in initial_solutions],
                        adaptive_enabled=adaptive_enabled,
                    ),
                )
            )
        if use_tabu:
            for restart in range(settings.tabu.restarts):
                seed_solution = initial_solutions[master_rng.randrange(len(initial_solutions))]
                tasks.append(
                    (
                        f"{TabuSearchOptimizer.name} #{restart + 1}",
                        TabuSearchOptimizer(
                            settings.tabu,
                            adaptive,
                            _child_rng(master_rng),
                            initial_solution=clone_solution(seed_solution),
                            adaptive_enabled=adaptive_enabled,
                        ),
                    )
                )
        if toggles.use_simulated_annealing:
            seed_solution = initial_solutions[master_rng.randrange(len(initial_solutions))]
            tasks.append(
                (
                    SimulatedAnnealingOptimizer.name,
                    SimulatedAnnealingOptimizer(
                        settings.annealing,
                        adaptive,
                        _child_rng(master_rng),
                        initial_solution=clone_solution(seed_solution),
                        adaptive_enabled=adaptive_enabled,
                    ),
                )
            )
        if toggles.use_ant_colony:
            tasks.append(
                (
                    AntColonyOptimizer.name,
                    AntColonyOptimizer(settings.colony, _child_rng(master_rng)),
                )
            )
        if toggles.use_constraint_programming:
            tasks.append(
                (
                    ConstraintProgrammingOptimizer.name,
                    ConstraintProgrammingOptimizer(settings.constraint, _child_rng(master_rng)),
                )
            )
        return tasks

    def _run_tasks(
        self, context: ProblemContext, tasks: List[Tuple[str, Optimizer]]
    ) -> List[Tuple[str, Solution, float]]:
        """Run tasks on a thread pool; failing tasks are logged and excluded."""
        results: Dict[str, Tuple[Solution, Optimizer]] = {}
        max_workers = max(1, min(self.settings.orchestration.max_workers, len(tasks)))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(optimizer.solve, context): (label, optimizer)
                for label, optimizer in tasks
            }
            for future in as_completed(futures):
                label, optimizer = futures[future]
                try:
                    results[label] = (future.result(), optimizer)
                    logger.debug(f"✅ {label} finished")
                except Exception as e:
                    logger.error(f"❌ {label} failed: {e}")
                    self.statistics[label] = {"failed": True, "error": str(e)}

        candidates: List[Tuple[str, Solution, float]] = []
        tabu_best: Optional[Tuple[str, Solution, float]] = None
        tabu_stats: List[Dict[str, Any]] = []

        # iterate in task order so the outcome is independent of completion order
        for label, _ in tasks:
            if label not in results:
                continue
            solution, optimizer = results[label]
            score = context.evaluator.score(solution)
            stats = optimizer.statistics.to_dict()

            if label.startswith(TabuSearchOptimizer.name):
                tabu_stats.append(stats)
                if tabu_best is None or _rank(solution, score, context) < _rank(
                    tabu_best[1], tabu_best[2], context
                ):
                    tabu_best = (TabuSearchOptimizer.name, solution, score)
                continue

            display = _candidate_label(label, optimizer)
            self.statistics[display] = stats
            candidates.append((display, solution, score))

        if tabu_best is not None:
            self.statistics[TabuSearchOptimizer.name] = {
                "restarts": len(tabu_stats),
                "iterations": sum(s["iterations"] for s in tabu_stats),
                "improvements": sum(s["improvements"] for s in tabu_stats),
                "best_score": tabu_best[2],
                "runs": tabu_stats,
            }
            candidates.append(tabu_best)

        candidates.sort(key=lambda c: ALGORITHM_ORDER.index(_base_label(c[0])))
        return candidates

    def _report_partial(
        self, solution: Solution, composition: Dict[str, int], diagnostics: DiagnosticsSink
    ) -> None:
        logger.warning("⚠️ No candidate filled every slot, returning partial teams")
        for index, team in enumerate(solution):
            for role, missing in shortfalls(team, composition).items():
                diagnostics.warn(
                    "partial_result",
                    f"Team {index + 1} is missing {missing} {self.sport.display_name(role)}",
                    role=role,
                    team_index=index,
                )

    def _log_performance(
        self, candidates: List[Tuple[str, Solution, float]], winner: str
    ) -> None:
        logger.info("📊 Algorithm performance:")
        for label, _, score in sorted(candidates, key=lambda c: c[2]):
            marker = "🏆" if label == winner else "  "
            logger.info(f"{marker} {label:<45} {score:>12.3f}")


def _child_rng(master: random.Random) -> random.Random:
    return random.Random(master.getrandbits(64))


def _rank(solution: Solution, score: float, context: ProblemContext) -> Tuple[bool, float]:
    """Sort key: complete solutions first, then by score."""
    return (not is_feasible(solution, context.composition, context.team_count), score)


def _base_label(label: str) -> str:
    for name in ALGORITHM_ORDER:
        if label.startswith(name):
            return name
    return label


def _candidate_label(label: str, optimizer: Optimizer) -> str:
    """Mark fallback outputs so they are never reported as the algorithm's own."""
    if not optimizer.statistics.fallback_used:
        return label
    if label == ConstraintProgrammingOptimizer.name:
        return f"{label} (Greedy Fallback)"
    return f"{label} (Fallback)"


def _coerce_players(players: Sequence[PlayerInput]) -> List[Player]:
    return [p if isinstance(p, Player) else Player.model_validate(p) for p in players]
