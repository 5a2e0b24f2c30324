"""生入力状態管理モジュール.

evdevから受け取った全チャンネルの生値を状態テーブルとして保持する。
イベント受信時は代入のみで処理負荷を最小化。
"""

from __future__ import annotations

from threading import Lock

from core_gamepad.state import (
    AXIS_CENTER,
    AXIS_MAX,
    AXIS_MIN,
    POV_NEUTRAL,
    RawSample,
)


# ニュートラル値
BUTTON_NEUTRAL = 0
STICK_NEUTRAL = AXIS_CENTER
TRIGGER_NEUTRAL = AXIS_MIN

# HAT(x, y) → POV (0.01度単位、上から時計回り)
_HAT_TO_POV = {
    (0, -1): 0,
    (1, -1): 4500,
    (1, 0): 9000,
    (1, 1): 13500,
    (0, 1): 18000,
    (-1, 1): 22500,
    (-1, 0): 27000,
    (-1, -1): 31500,
}


def scale_to_raw(value: int, dev_min: int, dev_max: int) -> int:
    """デバイスの生値を0-65535の範囲に変換.

    Args:
        value: デバイスの生値
        dev_min: デバイスの最小値
        dev_max: デバイスの最大値

    Returns:
        0-65535の範囲に変換された値
    """
    # 線形スケーリング
    if dev_max == dev_min:
        # ゼロ除算を防ぐ
        scaled = AXIS_CENTER
    else:
        scaled = int((value - dev_min) * AXIS_MAX / (dev_max - dev_min))

    # 0-65535の範囲にクランプ
    return max(AXIS_MIN, min(AXIS_MAX, scaled))


def hat_to_pov(hat_x: int, hat_y: int) -> int:
    """HAT方式の十字キー (-1, 0, +1) をPOV値に変換.

    Returns:
        0.01度単位の角度。未入力ならPOV_NEUTRAL
    """
    return _HAT_TO_POV.get((hat_x, hat_y), POV_NEUTRAL)


class InputState:
    """生入力状態管理クラス.

    全チャンネルの生値を保持し、RawSample取得機能を提供する。
    スレッドセーフ実装。
    """

    def __init__(self, combined_trigger: bool = False):
        """全チャンネルをニュートラル値で初期化.

        Args:
            combined_trigger: L2/R2が1つの軸に合算されているか
        """
        self._lock = Lock()
        self._combined_trigger = combined_trigger
        self._axes: dict[str, int] = {}
        self._button_mask = 0
        self._hat = [0, 0]
        self.reset()

    def update_axis(self, name: str, value: int):
        """軸の値を更新（代入のみ）.

        Args:
            name: 生軸チャンネル名
            value: 0-65535に変換済みの値
        """
        with self._lock:
            self._axes[name] = value

    def update_button(self, bit: int, pressed: int):
        """ボタンのビットを更新.

        Args:
            bit: ボタンのビット位置
            pressed: ボタン値 (0 or 1、evdevのリピート2もオン扱い)
        """
        with self._lock:
            if pressed:
                self._button_mask |= 1 << bit
            else:
                self._button_mask &= ~(1 << bit)

    def update_hat(self, axis: str, value: int):
        """HAT方式の十字キーの値を更新.

        Args:
            axis: "hat_x" または "hat_y"
            value: -1, 0, +1
        """
        with self._lock:
            if axis == "hat_x":
                self._hat[0] = value
            elif axis == "hat_y":
                self._hat[1] = value

    def snapshot(self, connected: bool = True) -> RawSample:
        """現在の全チャンネルの値をコピーしてRawSampleで返す.

        Args:
            connected: 今フレームの取得に成功したか

        Returns:
            現在の生入力
        """
        with self._lock:
            return RawSample(
                axes=self._axes.copy(),
                button_mask=self._button_mask,
                pov=hat_to_pov(self._hat[0], self._hat[1]),
                connected=connected,
            )

    def reset(self):
        """全チャンネルをニュートラル値にリセット（切断時用）."""
        with self._lock:
            for channel in ("left_x", "left_y", "right_x", "right_y"):
                # スティックは中立位置
                self._axes[channel] = STICK_NEUTRAL

            if self._combined_trigger:
                # 合算トリガーは中央が未入力
                self._axes["trigger_primary"] = STICK_NEUTRAL
                self._axes.pop("trigger_secondary", None)
            else:
                self._axes["trigger_primary"] = TRIGGER_NEUTRAL
                self._axes["trigger_secondary"] = TRIGGER_NEUTRAL

            self._button_mask = BUTTON_NEUTRAL
            self._hat = [0, 0]
