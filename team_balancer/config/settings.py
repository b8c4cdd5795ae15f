"""
Global Configuration System for Team Balancer

Centralized configuration for every tunable value used by the optimization engine.
Provides type-safe configuration with validation and environment variable support.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator


class AlgorithmToggleConfig(BaseModel):
    """Which search algorithms the orchestrator launches"""

    use_genetic_algorithm: bool = Field(
        default=True, description="Run the genetic algorithm"
    )
    use_tabu_search: bool = Field(default=True, description="Run tabu search restarts")
    use_simulated_annealing: bool = Field(
        default=True, description="Run simulated annealing"
    )
    use_ant_colony: bool = Field(default=True, description="Run ant colony optimization")
    use_constraint_programming: bool = Field(
        default=True, description="Run the constraint programming backtracker"
    )
    adaptive_swap_enabled: bool = Field(
        default=True,
        description="Allow the universal swap to pick the strength-adaptive swap",
    )

    @property
    def any_enabled(self) -> bool:
        return any(
            [
                self.use_genetic_algorithm,
                self.use_tabu_search,
                self.use_simulated_annealing,
                self.use_ant_colony,
                self.use_constraint_programming,
            ]
        )


class AdaptiveParametersConfig(BaseModel):
    """Objective weights and adaptive move parameters"""

    strong_weak_swap_probability: float = Field(
        default=0.6,
        description="Probability that the adaptive swap targets strongest/weakest teams",
        ge=0.0,
        le=1.0,
    )
    position_balance_weight: float = Field(
        default=0.3, description="Weight of per-role imbalance in the score", ge=0.0
    )
    variance_weight: float = Field(
        default=0.5, description="Weight of strength std-dev in the score", ge=0.0
    )


class GeneticAlgorithmConfig(BaseModel):
    """Genetic Algorithm Configuration"""

    population_size: int = Field(default=20, description="Population size", ge=2, le=500)
    generation_count: int = Field(
        default=100, description="Number of generations", ge=1, le=10000
    )
    mutation_rate: float = Field(
        default=0.2, description="Probability of mutating an offspring", ge=0.0, le=1.0
    )
    crossover_rate: float = Field(
        default=0.7, description="Probability of crossover vs cloning", ge=0.0, le=1.0
    )
    elitism_count: int = Field(
        default=2, description="Top solutions carried over unchanged", ge=0
    )
    tournament_size: int = Field(default=3, description="Tournament size", ge=1, le=50)
    max_stagnation: int = Field(
        default=20,
        description="Generations without improvement before regenerating the weaker half",
        ge=1,
    )

    @model_validator(mode="after")
    def validate_elitism(self):
        if self.elitism_count >= self.population_size:
            raise ValueError("elitism_count must be smaller than population_size")
        return self


class TabuSearchConfig(BaseModel):
    """Tabu Search Configuration"""

    tabu_tenure: int = Field(
        default=100, description="Solutions kept in the tabu list", ge=1
    )
    iterations: int = Field(default=5000, description="Iterations per restart", ge=1)
    neighbor_count: int = Field(
        default=20, description="Neighbors sampled per iteration", ge=1
    )
    diversification_frequency: int = Field(
        default=1000, description="Iterations between forced diversifications", ge=1
    )
    stagnation_restart: int = Field(
        default=500,
        description="Non-improving iterations before restarting from the best",
        ge=1,
    )
    restarts: int = Field(
        default=3, description="Independent restarts run by the orchestrator", ge=1, le=20
    )


class SimulatedAnnealingConfig(BaseModel):
    """Simulated Annealing Configuration"""

    initial_temperature: float = Field(
        default=1000.0, description="Starting temperature", gt=0.0
    )
    cooling_rate: float = Field(
        default=0.995, description="Geometric cooling factor", gt=0.0, lt=1.0
    )
    iterations: int = Field(default=50000, description="Iteration budget", ge=1)
    reheat_enabled: bool = Field(default=True, description="Reheat on stagnation")
    reheat_temperature: float = Field(
        default=500.0, description="Temperature after a reheat", gt=0.0
    )
    reheat_iterations: int = Field(
        default=10000,
        description="Accepted non-improving moves before reheating",
        ge=1,
    )


class AntColonyConfig(BaseModel):
    """Ant Colony Optimization Configuration"""

    ant_count: int = Field(default=20, description="Ants per iteration", ge=1)
    iterations: int = Field(default=100, description="Colony iterations", ge=1)
    alpha: float = Field(default=1.0, description="Pheromone importance", ge=0.0)
    beta: float = Field(default=2.0, description="Heuristic (rating) importance", ge=0.0)
    evaporation_rate: float = Field(
        default=0.1, description="Pheromone evaporation per iteration", ge=0.0, le=1.0
    )
    pheromone_deposit: float = Field(
        default=100.0, description="Deposit constant Q", gt=0.0
    )
    elitist_weight: float = Field(
        default=2.0, description="Extra reinforcement for the best-so-far", ge=0.0
    )


class ConstraintProgrammingConfig(BaseModel):
    """Constraint Programming Configuration"""

    max_backtracks: int = Field(
        default=10000, description="Backtrack budget before falling back", ge=1
    )
    variable_ordering: Literal["most-constrained", "input-order"] = Field(
        default="most-constrained", description="Variable selection heuristic"
    )
    value_ordering: Literal["least-constraining", "input-order"] = Field(
        default="least-constraining", description="Value ordering heuristic"
    )


class LocalSearchConfig(BaseModel):
    """Local Search Configuration"""

    iterations: int = Field(default=1500, description="Hill-climbing iterations", ge=1)


class GeneratorConfig(BaseModel):
    """Initial solution generator configuration"""

    greedy_noise: float = Field(
        default=50.0, description="Rating jitter span for randomized greedy", ge=0.0
    )
    balanced_noise: float = Field(
        default=40.0, description="Rating jitter span for randomized balanced", ge=0.0
    )
    snake_noise: float = Field(
        default=30.0, description="Rating jitter span for randomized snake/smart", ge=0.0
    )
    smart_max_passes: int = Field(
        default=100, description="Fixed-point passes for the smart generator", ge=1
    )
    snake_max_rounds: int = Field(
        default=100, description="Round cap for the snake draft", ge=1
    )
    role_priority: List[str] = Field(
        default_factory=lambda: ["MB", "S", "L", "OPP", "OH"],
        description="Role fill order; roles not listed follow in composition order",
    )


class OrchestrationConfig(BaseModel):
    """Orchestrator execution configuration"""

    random_seed: Optional[int] = Field(
        default=None, description="Master seed (None = fresh entropy per run)"
    )
    max_workers: int = Field(
        default=6, description="Worker threads for concurrent algorithms", ge=1, le=64
    )
    time_budget_seconds: Optional[float] = Field(
        default=None, description="Wall-clock deadline per optimize() call"
    )
    yield_interval: int = Field(
        default=100, description="Iterations between deadline checks", ge=1
    )
    warning_window_seconds: float = Field(
        default=5.0, description="Duplicate warning suppression window", ge=0.0
    )

    @field_validator("time_budget_seconds")
    @classmethod
    def validate_time_budget(cls, v):
        if v is not None and v <= 0:
            raise ValueError("time_budget_seconds must be positive")
        return v


class TeamBalancerConfig(BaseModel):
    """Master configuration container"""

    algorithms: AlgorithmToggleConfig = Field(default_factory=AlgorithmToggleConfig)
    adaptive: AdaptiveParametersConfig = Field(
        default_factory=AdaptiveParametersConfig
    )
    genetic: GeneticAlgorithmConfig = Field(default_factory=GeneticAlgorithmConfig)
    tabu: TabuSearchConfig = Field(default_factory=TabuSearchConfig)
    annealing: SimulatedAnnealingConfig = Field(
        default_factory=SimulatedAnnealingConfig
    )
    colony: AntColonyConfig = Field(default_factory=AntColonyConfig)
    constraint: ConstraintProgrammingConfig = Field(
        default_factory=ConstraintProgrammingConfig
    )
    local_search: LocalSearchConfig = Field(default_factory=LocalSearchConfig)
    generators: GeneratorConfig = Field(default_factory=GeneratorConfig)
    orchestration: OrchestrationConfig = Field(default_factory=OrchestrationConfig)


_ENV_PREFIX = "TEAM_BALANCER_"


def _coerce_env_value(value: str):
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        if "." in value:
            return float(value)
    except ValueError:
        pass
    return value


def _env_overrides(sections: List[str]) -> Dict[str, Dict]:
    """Collect TEAM_BALANCER_{SECTION}_{FIELD} overrides.

    Section names may contain underscores (local_search), so the longest
    matching section prefix wins.
    """
    overrides: Dict[str, Dict] = {}
    ordered = sorted(sections, key=len, reverse=True)
    for env_var, value in os.environ.items():
        if not env_var.startswith(_ENV_PREFIX):
            continue
        remainder = env_var[len(_ENV_PREFIX) :].lower()
        for section in ordered:
            if remainder.startswith(section + "_"):
                field = remainder[len(section) + 1 :]
                overrides.setdefault(section, {})[field] = _coerce_env_value(value)
                break
    return overrides


def load_config(
    config_path: Optional[Path] = None, config_data: Optional[Dict] = None
) -> TeamBalancerConfig:
    """
    Load configuration with environment variable overrides and optional config file

    Args:
        config_path: Optional path to a JSON configuration file
        config_data: Optional dictionary of configuration data

    Environment variables can override any config value using the pattern:
    TEAM_BALANCER_{SECTION}_{FIELD} = value

    Example: TEAM_BALANCER_ORCHESTRATION_RANDOM_SEED=42
    """
    config_dict: Dict = {}

    if config_path and config_path.exists():
        try:
            with open(config_path, "r") as f:
                if config_path.suffix.lower() == ".json":
                    config_dict = json.load(f)
        except Exception as e:
            logger.warning(f"⚠️ Failed to load config file {config_path}: {e}")

    if config_data:
        for section, fields in config_data.items():
            if isinstance(fields, dict) and isinstance(config_dict.get(section), dict):
                config_dict[section].update(fields)
            else:
                config_dict[section] = fields

    sections = list(TeamBalancerConfig.model_fields.keys())
    for section, fields in _env_overrides(sections).items():
        if not isinstance(config_dict.get(section), dict):
            config_dict[section] = {}
        config_dict[section].update(fields)

    try:
        return TeamBalancerConfig(**config_dict)
    except Exception as e:
        logger.warning(f"⚠️ Configuration validation failed: {e}")
        logger.warning("Using default configuration...")
        return TeamBalancerConfig()


config = load_config()
