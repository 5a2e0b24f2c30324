"""呼び出し側が所有するコントローラーセッション.

今フレーム/前フレームの状態とデバイス情報をまとめて保持する。
"""

from __future__ import annotations

from core_gamepad import edges as _edges
from core_gamepad.normalizer import normalize
from core_gamepad.state import (
    STICK_DEADZONE,
    DeviceCapabilities,
    GamepadState,
    RawSample,
)


class GamepadSession:
    """1台のコントローラーに対する状態の組.

    update() 1回につき正規化を1回だけ行い、直前の current を previous に送る。
    """

    def __init__(
        self,
        caps: DeviceCapabilities | None = None,
        deadzone: float = STICK_DEADZONE,
    ):
        """ニュートラル状態で初期化.

        Args:
            caps: 取得済みのデバイス情報。Noneならデフォルト
            deadzone: スティックのデッドゾーン (デフォルト: 0.15)
        """
        self._caps = caps or DeviceCapabilities()
        self._deadzone = deadzone
        self._current = GamepadState()
        self._previous = GamepadState()

    @property
    def caps(self) -> DeviceCapabilities:
        return self._caps

    @property
    def current(self) -> GamepadState:
        return self._current

    @property
    def previous(self) -> GamepadState:
        return self._previous

    def acquire(self, caps: DeviceCapabilities):
        """(再)接続時にデバイス情報を保持する."""
        self._caps = caps

    def release(self):
        """切断時にデバイス情報を破棄する."""
        self._caps = DeviceCapabilities()

    def update(self, sample: RawSample) -> GamepadState:
        """1フレーム分の生入力で状態を進める.

        Args:
            sample: 今フレームの生入力

        Returns:
            新しい current
        """
        self._previous = self._current
        self._current = normalize(sample, self._caps, self._deadzone)
        return self._current

    def is_held(self, name: str) -> bool:
        return _edges.is_held(name, self._current)

    def is_pressed(self, name: str) -> bool:
        return _edges.is_pressed(name, self._current, self._previous)

    def is_released(self, name: str) -> bool:
        return _edges.is_released(name, self._current, self._previous)

    def edges(self) -> list[tuple[str, str]]:
        return _edges.edges(self._current, self._previous)
