#!/usr/bin/env python3
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer

from robotiq2f import GripperConfig, RobotiqGripper, RobotiqSimulator
from robotiq2f.status import GripperFeedback

app = typer.Typer(add_completion=False)


def describe(feedback: GripperFeedback) -> str:
    """One-line summary of a feedback reading."""
    if not feedback.valid:
        return "No feedback (gripper did not answer)"
    s = feedback.status
    return (f"position={feedback.position:.4f} (raw {feedback.raw_position}) "
            f"commanded={feedback.commanded_position:.4f} (raw {feedback.raw_commanded_position}) "
            f"current={feedback.current:.2f} "
            f"gACT={s.gact.name} gGTO={s.ggto.name} gSTA={s.gsta.name} "
            f"gOBJ={s.gobj.name} gFLT={s.gflt.name}")


def connect_gripper(ctx: typer.Context) -> RobotiqGripper:
    config: GripperConfig = ctx.obj["config"]
    transport = RobotiqSimulator() if ctx.obj["sim"] else None
    gripper = RobotiqGripper(config, transport=transport)
    if not gripper.connect():
        print(f"Failed to connect to gripper on {config.port}")
        raise typer.Exit(code=1)
    return gripper


def ensure_activated(gripper: RobotiqGripper) -> None:
    """Reset and activate unless the gripper already is activated."""
    if gripper.is_activated():
        return
    print("Activating gripper...")
    if not (gripper.reset() and gripper.activate()):
        print("Activation failed")
        raise typer.Exit(code=1)


def finish(gripper: RobotiqGripper, ok: bool, action: str) -> None:
    print(describe(gripper.get_feedback()))
    gripper.close()
    if not ok:
        print(f"{action} failed")
        raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    port: Optional[str] = typer.Option(None, help="Serial port (default /dev/ttyUSB0)"),
    baud: Optional[int] = typer.Option(None, help="Baud rate (default 115200)"),
    alpha: Optional[float] = typer.Option(None, help="Position scale slope"),
    beta: Optional[float] = typer.Option(None, help="Position scale zero crossing"),
    timeout_ms: Optional[int] = typer.Option(None, help="Receive timeout in ms"),
    max_polls: Optional[int] = typer.Option(None, help="Give up blocking commands after this many polls"),
    sim: bool = typer.Option(False, help="Run against the built-in simulator"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log frame traffic"),
):
    """Control a Robotiq adaptive gripper over MODBUS RTU."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(message)s")
    try:
        config = GripperConfig.from_yaml(config_file) if config_file else GripperConfig()
        overrides = {
            "port": port,
            "baud": baud,
            "scale_alpha": alpha,
            "scale_beta": beta,
            "receive_timeout_ms": timeout_ms,
            "max_polls": max_polls,
        }
        config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
        if sim:
            config = replace(config, activation_settle_s=0.0)
    except (OSError, ValueError) as e:
        print(f"Invalid configuration: {e}")
        raise typer.Exit(code=2)
    ctx.obj = {"config": config, "sim": sim}


@app.command()
def activate(ctx: typer.Context):
    """Reset, then activate the gripper and wait for completion."""
    gripper = connect_gripper(ctx)
    print("Resetting gripper...")
    ok = gripper.reset()
    if ok:
        print("Activating gripper...")
        ok = gripper.activate()
    finish(gripper, ok, "Activation")


@app.command()
def reset(ctx: typer.Context):
    """Reset (deactivate) the gripper."""
    gripper = connect_gripper(ctx)
    finish(gripper, gripper.reset(), "Reset")


@app.command("open")
def open_(ctx: typer.Context, no_wait: bool = typer.Option(False, help="Return without waiting for motion to end")):
    """Open the gripper fully."""
    gripper = connect_gripper(ctx)
    ensure_activated(gripper)
    finish(gripper, gripper.open_gripper(blocking=not no_wait), "Open")


@app.command()
def close(ctx: typer.Context, no_wait: bool = typer.Option(False, help="Return without waiting for motion to end")):
    """Close the gripper until closed or an object is met."""
    gripper = connect_gripper(ctx)
    ensure_activated(gripper)
    finish(gripper, gripper.close_gripper(blocking=not no_wait), "Close")


@app.command()
def position(ctx: typer.Context, target: float = typer.Argument(..., help="Target position in scaled units"),
             no_wait: bool = typer.Option(False, help="Return without waiting for motion to end")):
    """Move the gripper to a scaled position."""
    gripper = connect_gripper(ctx)
    ensure_activated(gripper)
    print(f"Moving to {target} (raw {gripper.position_to_word(target)})")
    finish(gripper, gripper.set_gripper_position(target, blocking=not no_wait), "Positioning")


@app.command()
def feedback(ctx: typer.Context):
    """Print one feedback reading."""
    gripper = connect_gripper(ctx)
    fb = gripper.get_feedback()
    print(describe(fb))
    gripper.close()
    if not fb.valid:
        raise typer.Exit(code=1)


@app.command()
def status(ctx: typer.Context):
    """Print the summarised gripper status."""
    gripper = connect_gripper(ctx)
    print(f"Status: {gripper.get_basic_status().name}")
    gripper.close()


if __name__ == "__main__":
    app()
