"""
Team Balancer Configuration Module

Provides centralized configuration management for the optimization engine.
Import the global config instance to access all configuration values.

Usage:
    from team_balancer.config import config

    # Access genetic algorithm configuration
    population = config.genetic.population_size

    # Access orchestration configuration
    seed = config.orchestration.random_seed
"""

from .settings import (
    TeamBalancerConfig,
    AlgorithmToggleConfig,
    AdaptiveParametersConfig,
    GeneticAlgorithmConfig,
    TabuSearchConfig,
    SimulatedAnnealingConfig,
    AntColonyConfig,
    ConstraintProgrammingConfig,
    LocalSearchConfig,
    GeneratorConfig,
    OrchestrationConfig,
    config,
    load_config,
)
from .sports import (
    SportConfig,
    VOLLEYBALL,
    BASKETBALL,
    FOOTBALL,
    SPORTS,
    get_sport_config,
    validate_sport_config,
)

__all__ = [
    "TeamBalancerConfig",
    "AlgorithmToggleConfig",
    "AdaptiveParametersConfig",
    "GeneticAlgorithmConfig",
    "TabuSearchConfig",
    "SimulatedAnnealingConfig",
    "AntColonyConfig",
    "ConstraintProgrammingConfig",
    "LocalSearchConfig",
    "GeneratorConfig",
    "OrchestrationConfig",
    "config",
    "load_config",
    "SportConfig",
    "VOLLEYBALL",
    "BASKETBALL",
    "FOOTBALL",
    "SPORTS",
    "get_sport_config",
    "validate_sport_config",
]
