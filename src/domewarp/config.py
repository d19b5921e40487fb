from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from domewarp.core.bisection import bisection_steps

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "domewarp.config.v0"

# Relative bisection tolerance, applied to the mirror radius and the dome radius.
REL_TOLERANCE = 1e-8


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class MirrorMeta:
    radius_m: float = 0.30
    axis_ratio: float = 0.8


@dataclass(frozen=True)
class ProjectorMeta:
    distance_m: float = 0.95
    beam_rad: float = 0.6
    aspect_ratio: float = 4.0 / 3.0


@dataclass(frozen=True)
class MountMeta:
    alpha_rad: float = 0.0
    beta_rad: float = -0.2


@dataclass(frozen=True)
class DomeMeta:
    radius_m: float = 3.658
    offset_x_m: float = 2.5
    offset_z_m: float = 1.0


@dataclass(frozen=True)
class OutputMeta:
    phase_angle_rad: float = -0.5 * math.pi
    flip_horizontal: bool = False
    flip_vertical: bool = False


@dataclass(frozen=True)
class WarpConfig:
    mirror: MirrorMeta = field(default_factory=MirrorMeta)
    projector: ProjectorMeta = field(default_factory=ProjectorMeta)
    mount: MountMeta = field(default_factory=MountMeta)
    dome: DomeMeta = field(default_factory=DomeMeta)
    output: OutputMeta = field(default_factory=OutputMeta)
    schema_version: str = SCHEMA_VERSION

    def __post_init__(self) -> None:
        validate_warp_config(self)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def validate_warp_config(cfg: WarpConfig) -> None:
    _require(cfg.schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    numbers = {
        "mirror.radius_m": cfg.mirror.radius_m,
        "mirror.axis_ratio": cfg.mirror.axis_ratio,
        "projector.distance_m": cfg.projector.distance_m,
        "projector.beam_rad": cfg.projector.beam_rad,
        "projector.aspect_ratio": cfg.projector.aspect_ratio,
        "mount.alpha_rad": cfg.mount.alpha_rad,
        "mount.beta_rad": cfg.mount.beta_rad,
        "dome.radius_m": cfg.dome.radius_m,
        "dome.offset_x_m": cfg.dome.offset_x_m,
        "dome.offset_z_m": cfg.dome.offset_z_m,
        "output.phase_angle_rad": cfg.output.phase_angle_rad,
    }
    for name, value in numbers.items():
        _require(isinstance(value, (int, float)) and math.isfinite(value), f"{name} must be a finite number")

    R = cfg.mirror.radius_m
    _require(R > 0.0, "mirror.radius_m must be > 0")
    # b/a == 1 is a sphere: the focal parameter collapses to 0 and the coordinates degenerate.
    _require(0.0 < cfg.mirror.axis_ratio < 1.0, "mirror.axis_ratio must be in (0, 1)")
    _require(cfg.projector.distance_m > R, "projector.distance_m must exceed mirror.radius_m")
    _require(0.0 < cfg.projector.beam_rad < math.pi, "projector.beam_rad must be in (0, pi)")
    _require(cfg.projector.aspect_ratio > 0.0, "projector.aspect_ratio must be > 0")

    S = cfg.dome.radius_m
    _require(S > 0.0, "dome.radius_m must be > 0")
    _require(
        math.hypot(cfg.dome.offset_x_m, cfg.dome.offset_z_m) + R < S,
        "mirror must lie inside the dome: hypot(offset_x_m, offset_z_m) + mirror.radius_m < dome.radius_m",
    )


def parse_warp_config(data: dict[str, Any]) -> WarpConfig:
    _require(isinstance(data, dict), "config must be a JSON object")
    schema_version = data.get("schema_version", SCHEMA_VERSION)
    _require(schema_version == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    def section(name: str) -> dict[str, Any]:
        raw = data.get(name, {})
        _require(isinstance(raw, dict), f"{name} must be an object")
        return raw

    def num(sec: dict[str, Any], key: str, default: float, where: str) -> float:
        raw = sec.get(key, default)
        _require(isinstance(raw, (int, float)) and not isinstance(raw, bool), f"{where}.{key} must be a number")
        return float(raw)

    def flag(sec: dict[str, Any], key: str, where: str) -> bool:
        raw = sec.get(key, False)
        _require(isinstance(raw, bool), f"{where}.{key} must be true or false")
        return raw

    mirror = section("mirror")
    projector = section("projector")
    mount = section("mount")
    dome = section("dome")
    output = section("output")

    d_mirror = MirrorMeta()
    d_projector = ProjectorMeta()
    d_mount = MountMeta()
    d_dome = DomeMeta()
    d_output = OutputMeta()

    cfg = WarpConfig(
        mirror=MirrorMeta(
            radius_m=num(mirror, "radius_m", d_mirror.radius_m, "mirror"),
            axis_ratio=num(mirror, "axis_ratio", d_mirror.axis_ratio, "mirror"),
        ),
        projector=ProjectorMeta(
            distance_m=num(projector, "distance_m", d_projector.distance_m, "projector"),
            beam_rad=num(projector, "beam_rad", d_projector.beam_rad, "projector"),
            aspect_ratio=num(projector, "aspect_ratio", d_projector.aspect_ratio, "projector"),
        ),
        mount=MountMeta(
            alpha_rad=num(mount, "alpha_rad", d_mount.alpha_rad, "mount"),
            beta_rad=num(mount, "beta_rad", d_mount.beta_rad, "mount"),
        ),
        dome=DomeMeta(
            radius_m=num(dome, "radius_m", d_dome.radius_m, "dome"),
            offset_x_m=num(dome, "offset_x_m", d_dome.offset_x_m, "dome"),
            offset_z_m=num(dome, "offset_z_m", d_dome.offset_z_m, "dome"),
        ),
        output=OutputMeta(
            phase_angle_rad=num(output, "phase_angle_rad", d_output.phase_angle_rad, "output"),
            flip_horizontal=flag(output, "flip_horizontal", "output"),
            flip_vertical=flag(output, "flip_vertical", "output"),
        ),
        schema_version=schema_version,
    )
    if cfg.output.flip_horizontal or cfg.output.flip_vertical:
        logger.warning("output flip flags are stored but not applied to the warp map")
    return cfg


def load_warp_config(path: Path) -> WarpConfig:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"{path} is not valid JSON: {e}") from e
    return parse_warp_config(data)


def config_to_dict(cfg: WarpConfig) -> dict[str, Any]:
    return asdict(cfg)


def save_warp_config(path: Path, cfg: WarpConfig) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_to_dict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path


@dataclass(frozen=True)
class WarpGeometry:
    """
    Solver-ready view of a `WarpConfig`.

    Raw values use the short optical names (R, v, S, ...); the derived values
    (focal parameter `a`, mirror level set `mu`, vertical opening `gamma`,
    bisection caps) are computed once here instead of per pixel.
    """

    config: WarpConfig
    R: float
    ba: float
    a: float
    mu: float
    b: float
    v: float
    beam: float
    ar: float
    gamma: float
    alpha: float
    beta: float
    M: float
    H: float
    S: float
    phase: float
    mirror_steps: int
    dome_steps: int

    @classmethod
    def from_config(cls, cfg: WarpConfig) -> "WarpGeometry":
        R = float(cfg.mirror.radius_m)
        ba = float(cfg.mirror.axis_ratio)
        mu = math.atanh(ba)
        a = R / math.cosh(mu)
        beam = float(cfg.projector.beam_rad)
        ar = float(cfg.projector.aspect_ratio)
        S = float(cfg.dome.radius_m)
        return cls(
            config=cfg,
            R=R,
            ba=ba,
            a=a,
            mu=mu,
            b=a * math.sinh(mu),
            v=float(cfg.projector.distance_m),
            beam=beam,
            ar=ar,
            gamma=2.0 * math.atan(math.tan(0.5 * beam) / ar),
            alpha=float(cfg.mount.alpha_rad),
            beta=float(cfg.mount.beta_rad),
            M=float(cfg.dome.offset_x_m),
            H=float(cfg.dome.offset_z_m),
            S=S,
            phase=float(cfg.output.phase_angle_rad),
            mirror_steps=bisection_steps(R, REL_TOLERANCE * R),
            dome_steps=bisection_steps(3.0 * S, REL_TOLERANCE * S),
        )
