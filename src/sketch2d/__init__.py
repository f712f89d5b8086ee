import logging

from .sketch2d import (
    ALWAYS,
    Always,
    BoundedCollection,
    Canvas,
    CapacityViolation,
    Color,
    Entity,
    FrameClock,
    InputState,
    NoiseConfig,
    NoiseField,
    RateGated,
    RenderPrimitive,
    integrate_with_attraction,
    is_dead,
    lerp,
    polar_spiral,
    smooth_toward,
    spawn_particle,
)
from .api import (
    Frame,
    InvalidParameter,
    ParameterStore,
    ParamSpec,
    SketchRunner,
    UpdateResult,
)
from .visualizations import (
    VISUALIZATIONS,
    MouseTrail,
    NoiseGrid,
    ParticleField,
    SpiralTrail,
    Visualization,
    WaveField,
    create_visualization,
)
from .mpl_viz import (
    AnimationConfig,
    PointerTracker,
    TrailCompositor,
    draw_frame,
    hsba_to_rgba,
    plot_frame,
    run_animation,
)
from .plotly_viz import (
    PlotlySnapshotConfig,
    plot_frame_interactive,
    run_animation_interactive,
)
from .logging_config import setup_logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ALWAYS", "Always", "RateGated",
    "BoundedCollection", "Entity", "CapacityViolation",
    "Canvas", "InputState", "FrameClock",
    "Color", "RenderPrimitive",
    "NoiseConfig", "NoiseField", "lerp", "polar_spiral",
    "integrate_with_attraction", "smooth_toward", "spawn_particle", "is_dead",
    "Frame", "InvalidParameter", "ParameterStore", "ParamSpec", "SketchRunner", "UpdateResult",
    "VISUALIZATIONS", "Visualization", "create_visualization",
    "WaveField", "ParticleField", "SpiralTrail", "NoiseGrid", "MouseTrail",
    "AnimationConfig", "PointerTracker", "TrailCompositor",
    "draw_frame", "hsba_to_rgba", "plot_frame", "run_animation",
    "PlotlySnapshotConfig", "plot_frame_interactive", "run_animation_interactive",
    "setup_logging",
]
