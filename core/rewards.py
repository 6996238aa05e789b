from decimal import Decimal, ROUND_HALF_UP

from core.config import settings
from core.errors import ValidationFailed
from models.settings import SystemSettings
from models.task import RewardInputs

def round_half_up(value: float) -> int:
    """Half-up rounding for positive values (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def calculate_reward(base: float, difficulty: int, multiplier: float) -> int:
    """
    Coins earned for completing a task.

    Args:
        base (float): Coins per difficulty point (settings.task_completion_base).
        difficulty (int): Task difficulty level.
        multiplier (float): settings.complexity_multiplier.

    Returns:
        int: round(base * difficulty * multiplier)
    """
    return round_half_up(base * difficulty * multiplier)

def validate_difficulty(level: int) -> int:
    if not settings.DIFFICULTY_MIN <= level <= settings.DIFFICULTY_MAX:
        raise ValidationFailed(
            f"difficulty_level must be between {settings.DIFFICULTY_MIN} and {settings.DIFFICULTY_MAX}"
        )
    return level

def snapshot_reward(system_settings: SystemSettings, difficulty: int):
    """
    Computes the reward for `difficulty` under the current policy.

    The inputs are returned alongside the amount so the task keeps the policy
    it was priced under. Later settings changes never touch stored tasks.

    Returns:
        tuple: (coins_reward, RewardInputs)
    """
    validate_difficulty(difficulty)
    coins = calculate_reward(
        system_settings.task_completion_base,
        difficulty,
        system_settings.complexity_multiplier
    )
    inputs = RewardInputs(
        task_completion_base=system_settings.task_completion_base,
        complexity_multiplier=system_settings.complexity_multiplier,
        difficulty_level=difficulty,
        settings_version=system_settings.version
    )
    return coins, inputs
