"""ゲームパッドのデータモデル.

取得側から受け取る生サンプル、デバイス情報、正規化済み状態を定義する。
正規化済み状態は毎フレーム丸ごと作り直す値型として扱う。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


# 生軸値の範囲 (0-65535、中央32767)
AXIS_MIN = 0
AXIS_MAX = 65535
AXIS_CENTER = 32767

# 十字キー(POV)の範囲 (0.01度単位、上から時計回り)
POV_MAX = 35900
POV_NEUTRAL = 65535

# スティックのデッドゾーン
STICK_DEADZONE = 0.15

# 合算トリガー軸の中央付近デッドゾーン(生値)
COMBINED_TRIGGER_DEADZONE = 1000

# トリガーをボタンとして扱う閾値(これを超えたらオン)
TRIGGER_BUTTON_THRESHOLD = 0.5

# 製品名の最大長
PRODUCT_NAME_MAX = 31

# 生軸チャンネル名
RAW_AXES = [
    "left_x",
    "left_y",
    "right_x",
    "right_y",
    "trigger_primary",
    "trigger_secondary",
]

# 正規化済みアナログチャンネル名
STICKS = ["left_x", "left_y", "right_x", "right_y"]
TRIGGERS = ["L2", "R2"]
ANALOG_CHANNELS = STICKS + TRIGGERS

# ボタンビット位置 → デジタル入力名
BUTTON_BITS = [
    "face_down",   # A、×、B
    "face_right",  # B、◯、A
    "face_left",   # X、□、Y
    "face_up",     # Y、△、X
    "L1",
    "R1",
    "select",
    "start",
    "L3",
    "R3",
    "extra1",
    "extra2",
]

DPAD = ["dpad_up", "dpad_down", "dpad_left", "dpad_right"]

# 全デジタル入力 (エッジ判定の対象)
DIGITAL_INPUTS = [
    "dpad_up",
    "dpad_down",
    "dpad_left",
    "dpad_right",
    "face_down",
    "face_right",
    "face_left",
    "face_up",
    "L1",
    "R1",
    "L2",
    "R2",
    "L3",
    "R3",
    "start",
    "select",
    "extra1",
    "extra2",
]


def _freeze(obj, *names):
    # dictフィールドを読み取り専用のコピーに置き換える
    for name in names:
        object.__setattr__(obj, name, MappingProxyType(dict(getattr(obj, name))))


@dataclass(frozen=True)
class RawSample:
    """1フレーム分の生入力.

    axes は RAW_AXES の名前をキーとする生値 (0-65535)。
    trigger_secondary はデバイスに無ければ含まれない。
    """

    axes: Mapping[str, int]
    button_mask: int = 0
    pov: int = POV_NEUTRAL
    connected: bool = True

    def __post_init__(self):
        _freeze(self, "axes")

    def __hash__(self):
        return hash((
            frozenset(self.axes.items()),
            self.button_mask,
            self.pov,
            self.connected,
        ))


@dataclass(frozen=True)
class DeviceCapabilities:
    """コントローラーのデバイス情報.

    正規化で参照するのは has_secondary_trigger_axis のみ。
    それ以外は表示用のメタデータ。
    """

    has_secondary_trigger_axis: bool = False
    name: str = ""
    vendor_id: int = 0
    product_id: int = 0
    num_axes: int = 0
    num_buttons: int = 0
    has_pov: bool = False
    profile: str = ""

    def __post_init__(self):
        # 製品名は31文字で切り詰める
        if len(self.name) > PRODUCT_NAME_MAX:
            object.__setattr__(self, "name", self.name[:PRODUCT_NAME_MAX])


def _neutral_analog() -> dict[str, float]:
    return {channel: 0.0 for channel in ANALOG_CHANNELS}


def _neutral_buttons() -> dict[str, bool]:
    return {name: False for name in DIGITAL_INPUTS}


@dataclass(frozen=True)
class GamepadState:
    """正規化済みのコントローラー状態.

    引数なしで生成すると未接続のニュートラル状態になる。
    """

    analog: Mapping[str, float] = field(default_factory=_neutral_analog)
    buttons: Mapping[str, bool] = field(default_factory=_neutral_buttons)

    # デバッグ用の生値
    raw_axes: Mapping[str, int] = field(default_factory=dict)
    raw_buttons: int = 0
    raw_pov: int = POV_NEUTRAL

    connected: bool = False

    def __post_init__(self):
        _freeze(self, "analog", "buttons", "raw_axes")

    def __hash__(self):
        return hash((
            frozenset(self.analog.items()),
            frozenset(self.buttons.items()),
            frozenset(self.raw_axes.items()),
            self.raw_buttons,
            self.raw_pov,
            self.connected,
        ))

    def is_any_pressed(self) -> bool:
        """いずれかのデジタル入力が押されているか."""
        return any(self.buttons.values())
