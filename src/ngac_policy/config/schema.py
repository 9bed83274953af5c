"""
NGAC Engine Configuration Schema

Defines the configuration structure for the policy engine.
All configuration can be specified via ngac.yaml or environment variables.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

TYPE_CHECKING_MODES = ("strict", "permissive")


@dataclass
class EngineConfig:
    """
    Central configuration for the policy graph and decider.

    Example ngac.yaml:
    ```yaml
    engine:
      type_checking: strict        # strict | permissive
      warn_on_unanchored: true

    logging:
      level: "${NGAC_LOG_LEVEL:-INFO}"
    ```
    """
    # Edge type-pair enforcement: "strict" raises, "permissive" logs and proceeds
    type_checking: str = "strict"

    # Log a warning for O/OA nodes that reach no policy class
    warn_on_unanchored: bool = True

    log_level: str = "INFO"

    # Additional metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type_checking not in TYPE_CHECKING_MODES:
            raise ValueError(
                f"Invalid type_checking mode: {self.type_checking!r} "
                f"(expected one of {', '.join(TYPE_CHECKING_MODES)})"
            )

    @property
    def is_strict(self) -> bool:
        """Check if edge type pairs are enforced"""
        return self.type_checking == "strict"

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for logging.basicConfig"""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

