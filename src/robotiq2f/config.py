import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

log = logging.getLogger(__name__)

FRAMING_LINE = "line"
FRAMING_IDLE = "idle"


@dataclass
class GripperConfig:
    """
    Connection and behaviour settings of a gripper session.

    Scale factors map a raw word u (0..255) to a position y:

        y = (alpha / 255) * u + beta
        u = (255 / alpha) * (y - beta)

    alpha = 1, beta = 0 gives y in [0: opened, 1: closed];
    alpha = -0.086, beta = 0.086 gives the 2F-85 stroke in metres,
    [0.086: opened, 0: closed].

    Args:
        port (str): Serial port (Linux default /dev/ttyUSB0).
        baud (int): Baud rate.
        receive_timeout_ms (int): Per-byte receive timeout.
        scale_alpha (float): Linear slope factor, must not be zero.
        scale_beta (float): Zero crossing factor.
        activation_settle_s (float): Extra wait after a blocking activation.
        poll_interval_s (float): Delay between feedback polls while blocking.
        max_polls (Optional[int]): Poll cap while blocking, None for unbounded.
        framing (str): "line" (line-feed terminated) or "idle" (silence terminated).
    """
    port: str = "/dev/ttyUSB0"
    baud: int = 115200
    receive_timeout_ms: int = 200
    scale_alpha: float = 1.0
    scale_beta: float = 0.0
    activation_settle_s: float = 2.0
    poll_interval_s: float = 0.0
    max_polls: Optional[int] = None
    framing: str = FRAMING_LINE

    def __post_init__(self) -> None:
        if self.scale_alpha == 0:
            raise ValueError("scale_alpha must not be zero")
        if self.receive_timeout_ms <= 0:
            raise ValueError("receive_timeout_ms must be positive")
        if self.max_polls is not None and self.max_polls < 1:
            raise ValueError("max_polls must be at least 1 or None")
        if self.framing not in (FRAMING_LINE, FRAMING_IDLE):
            raise ValueError(f"framing must be '{FRAMING_LINE}' or '{FRAMING_IDLE}'")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "GripperConfig":
        """
        Create a config from a mapping; missing keys keep their defaults.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "GripperConfig":
        """
        Load a config from a YAML file with an optional top-level ``gripper`` section.
        """
        cfg_path = Path(path)
        loaded = yaml.safe_load(cfg_path.read_text()) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config {cfg_path} must contain a mapping")
        section = loaded.get("gripper", loaded)
        if not isinstance(section, dict):
            raise ValueError(f"'gripper' section of {cfg_path} must be a mapping")
        log.info(f"Loaded gripper config from {cfg_path}")
        return cls.from_dict(section)

    def to_yaml(self) -> str:
        return yaml.safe_dump({"gripper": asdict(self)}, sort_keys=False)
