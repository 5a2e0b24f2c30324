"""前フレームとの比較による押下・トリガー・リリース判定.

判定は2つのスナップショットの比較のみで、内部状態は持たない。
"""

from __future__ import annotations

from core_gamepad.state import DIGITAL_INPUTS, GamepadState

PRESSED = "pressed"
RELEASED = "released"


def _value(state: GamepadState, name: str) -> bool:
    if name not in DIGITAL_INPUTS:
        raise ValueError(f"Unknown input: {name}")
    return state.buttons.get(name, False)


def is_held(name: str, current: GamepadState) -> bool:
    """押している間ずっとTrue."""
    return _value(current, name)


def is_pressed(name: str, current: GamepadState, previous: GamepadState) -> bool:
    """押した瞬間だけTrue (立ち上がりエッジ)."""
    return _value(current, name) and not _value(previous, name)


def is_released(name: str, current: GamepadState, previous: GamepadState) -> bool:
    """離した瞬間だけTrue (立ち下がりエッジ)."""
    return not _value(current, name) and _value(previous, name)


def edges(current: GamepadState, previous: GamepadState) -> list[tuple[str, str]]:
    """このフレームで変化した全入力を返す.

    Args:
        current: 今フレームの状態
        previous: 前フレームの状態（未接続のデフォルト状態でもよい）

    Returns:
        [(入力名, "pressed" or "released"), ...] DIGITAL_INPUTSの順
    """
    result = []
    for name in DIGITAL_INPUTS:
        if is_pressed(name, current, previous):
            result.append((name, PRESSED))
        elif is_released(name, current, previous):
            result.append((name, RELEASED))
    return result
