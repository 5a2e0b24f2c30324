"""正規化・デッドゾーン・トリガー判別モジュール.

毎フレーム呼ばれ、RawSampleをGamepadStateに変換する。
状態を持たない純粋関数のみで構成する。
"""

from __future__ import annotations

from core_gamepad.state import (
    AXIS_CENTER,
    AXIS_MAX,
    BUTTON_BITS,
    COMBINED_TRIGGER_DEADZONE,
    POV_MAX,
    STICK_DEADZONE,
    STICKS,
    TRIGGER_BUTTON_THRESHOLD,
    DeviceCapabilities,
    GamepadState,
    RawSample,
)


def normalize(
    sample: RawSample,
    caps: DeviceCapabilities,
    deadzone: float = STICK_DEADZONE,
) -> GamepadState:
    """生サンプルを正規化済みの状態に変換して返す.

    Args:
        sample: 1フレーム分の生入力
        caps: デバイス情報 (トリガー軸の構成のみ参照)
        deadzone: スティックのデッドゾーン (デフォルト: 0.15)

    Returns:
        正規化済みのGamepadState。未接続ならニュートラル状態
    """
    if not sample.connected:
        return GamepadState()

    analog = {}

    # スティックの正規化 + デッドゾーン処理
    for stick_name in STICKS:
        raw_value = sample.axes.get(stick_name, AXIS_CENTER)
        analog[stick_name] = apply_deadzone(scale_stick(raw_value), deadzone)

    # トリガーの正規化（軸構成で方式を切り替え）
    trigger_l, trigger_r = split_triggers(
        sample.axes, caps.has_secondary_trigger_axis
    )
    analog["L2"] = trigger_l
    analog["R2"] = trigger_r

    buttons = {}
    buttons.update(decode_pov(sample.pov))
    buttons.update(unpack_buttons(sample.button_mask))

    # トリガーをボタンとしても判定（生ビットは使わない）
    buttons["L2"] = trigger_l > TRIGGER_BUTTON_THRESHOLD
    buttons["R2"] = trigger_r > TRIGGER_BUTTON_THRESHOLD

    return GamepadState(
        analog=analog,
        buttons=buttons,
        raw_axes=dict(sample.axes),
        raw_buttons=sample.button_mask,
        raw_pov=sample.pov,
        connected=True,
    )


def scale_stick(raw: int) -> float:
    """スティック生値 (0-65535, 中央32767) を -1.0~1.0 に変換.

    65535 は中央から 32768 離れているため、-1.0~1.0 にクランプする。
    """
    value = (raw - AXIS_CENTER) / AXIS_CENTER
    return max(-1.0, min(1.0, value))


def apply_deadzone(value: float, deadzone: float = STICK_DEADZONE) -> float:
    """デッドゾーン処理を適用（スティック用）.

    デッドゾーン外の範囲を 0.0~1.0 に引き伸ばすため、
    最大まで倒したときは 1.0 のまま残る。

    Args:
        value: 正規化済みの値 (-1.0~1.0)
        deadzone: デッドゾーン閾値

    Returns:
        デッドゾーン処理済みの値
    """
    magnitude = abs(value)
    if magnitude < deadzone:
        return 0.0

    sign = 1.0 if value > 0 else -1.0
    return sign * (magnitude - deadzone) / (1.0 - deadzone)


def split_triggers(
    axes: dict[str, int], has_secondary_trigger_axis: bool
) -> tuple[float, float]:
    """トリガー軸を L2/R2 の 0.0~1.0 に変換.

    Args:
        axes: 生軸値
        has_secondary_trigger_axis: R2用の独立した軸があるか

    Returns:
        (triggerL, triggerR)
    """
    primary = axes.get("trigger_primary", 0)

    if has_secondary_trigger_axis:
        # 2軸が独立している場合（XInput系など）
        secondary = axes.get("trigger_secondary", 0)
        return primary / AXIS_MAX, secondary / AXIS_MAX

    # 1軸に合算されている場合（DirectInput系など）
    # 32767が中央（未入力）、65535方向がL2、0方向がR2
    if primary > AXIS_CENTER + COMBINED_TRIGGER_DEADZONE:
        return (primary - AXIS_CENTER) / (AXIS_MAX - AXIS_CENTER), 0.0
    if primary < AXIS_CENTER - COMBINED_TRIGGER_DEADZONE:
        return 0.0, (AXIS_CENTER - primary) / AXIS_CENTER
    return 0.0, 0.0


def decode_pov(pov: int) -> dict[str, bool]:
    """POV値を十字キー4方向に変換.

    各方向は90度幅で、境界(45/135/225/315度)では隣り合う2方向が同時にオンになる。

    Args:
        pov: 0.01度単位の角度、または未入力を示す値

    Returns:
        {"dpad_up": bool, "dpad_down": bool, "dpad_left": bool, "dpad_right": bool}
    """
    if pov < 0 or pov > POV_MAX:
        return {
            "dpad_up": False,
            "dpad_down": False,
            "dpad_left": False,
            "dpad_right": False,
        }

    angle = pov // 100
    return {
        "dpad_up": angle >= 315 or angle <= 45,
        "dpad_right": 45 <= angle <= 135,
        "dpad_down": 135 <= angle <= 225,
        "dpad_left": 225 <= angle <= 315,
    }


def unpack_buttons(mask: int) -> dict[str, bool]:
    """ボタンのビットフラグを名前付きの入力に展開."""
    return {name: bool(mask & (1 << bit)) for bit, name in enumerate(BUTTON_BITS)}
