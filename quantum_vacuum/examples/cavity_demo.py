"""Live cavity demo in a matplotlib window.

Sliders edit the controls through a :class:`SimulationSession`, the
Start/Stop button drives an :class:`AnimationDriver` backed by figure
timers, and resizing the window resizes the canvas without reseeding.

Run with:
    python -m quantum_vacuum.examples.cavity_demo
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
from matplotlib.widgets import Button, RadioButtons, Slider

from ..core.config import LOG_LEVEL
from ..core.state import MATERIALS, PARAMETER_RANGES
from ..simulation.driver import AnimationDriver
from ..simulation.engine import SimulationSession
from ..simulation.field import ParticleField
from ..visualization.renderer import FieldRenderer, MatplotlibCanvas, matplotlib_scheduler

_LABELS = {
    "mirror_angle": "Angle (°)",
    "mirror_spacing": "Spacing (nm)",
    "magnetic_field": "Field (T)",
    "field_direction": "Direction (°)",
}


def main() -> None:
    logging.basicConfig(level=LOG_LEVEL)
    session = SimulationSession()
    field = ParticleField()

    fig = plt.figure(figsize=(11, 6), facecolor="#0a0a0f")
    ax = fig.add_axes([0.02, 0.35, 0.7, 0.6])
    canvas = MatplotlibCanvas(ax, field.width, field.height)
    renderer = FieldRenderer(field, canvas)
    status = fig.text(0.02, 0.96, "", color="#e8eaed", fontsize=10)

    def redraw() -> None:
        renderer.tick(session.state, session.running)
        s = session.state
        status.set_text(
            f"score {session.score}   energy {s.energy} μeV   coherence {s.coherence}%   "
            f"chirality {s.chirality:+.2f}   {'TOPOLOGICAL' if s.topological_phase else ''}"
        )
        fig.canvas.draw_idle()

    schedule, cancel = matplotlib_scheduler(fig, interval_ms=33)
    driver = AnimationDriver(redraw, schedule, cancel)
    session.on_running_change(driver.set_running)

    sliders: dict[str, Slider] = {}
    for i, (name, (lo, hi, step)) in enumerate(PARAMETER_RANGES.items()):
        slider_ax = fig.add_axes([0.1, 0.25 - i * 0.05, 0.55, 0.03])
        slider = Slider(slider_ax, _LABELS[name], lo, hi,
                        valinit=getattr(session.state, name), valstep=step)
        slider.label.set_color("#9aa0a6")

        def on_change(value: float, name: str = name) -> None:
            session.set_parameter(name, value)
            if not session.running:
                redraw()

        slider.on_changed(on_change)
        sliders[name] = slider

    material_ax = fig.add_axes([0.76, 0.45, 0.2, 0.35], facecolor="#12121c")
    materials = RadioButtons(material_ax, list(MATERIALS))

    def on_material(label: str) -> None:
        if session.is_unlocked(label):
            session.set_parameter("inserted_material", label)
        if not session.running:
            redraw()

    materials.on_clicked(on_material)

    run_button = Button(fig.add_axes([0.76, 0.3, 0.09, 0.06]), "Start")
    reset_button = Button(fig.add_axes([0.87, 0.3, 0.09, 0.06]), "Reset")

    def on_run(_event) -> None:
        running = session.toggle_running()
        run_button.label.set_text("Stop" if running else "Start")
        if not running:
            redraw()

    def on_reset(_event) -> None:
        state = session.reset()
        run_button.label.set_text("Start")
        for name, slider in sliders.items():
            slider.set_val(getattr(state, name))
        redraw()

    run_button.on_clicked(on_run)
    reset_button.on_clicked(on_reset)

    def on_resize(event) -> None:
        bbox = ax.get_window_extent()
        renderer.resize(max(bbox.width / bbox.height * field.height, 1.0))
        if not session.running:
            redraw()

    fig.canvas.mpl_connect("resize_event", on_resize)
    fig.canvas.mpl_connect("close_event", lambda _event: driver.close())

    redraw()
    plt.show()


if __name__ == "__main__":
    main()
