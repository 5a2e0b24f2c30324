"""evdevでゲームパッドを自動検出するモジュール."""

from __future__ import annotations

import logging

import evdev
from evdev import ecodes

from core_gamepad.profile_loader import (
    GENERIC_PROFILE,
    get_profile,
    load_all_profiles,
)
from core_gamepad.state import DeviceCapabilities

logger = logging.getLogger(__name__)


def _is_sub_node(device: evdev.InputDevice) -> bool:
    # Touchpad / Motion Sensors ノード
    name_lower = device.name.lower()
    return "touchpad" in name_lower or "motion" in name_lower


def _is_gamepad(device: evdev.InputDevice) -> bool:
    keys = device.capabilities(absinfo=False).get(ecodes.EV_KEY, [])
    return ecodes.BTN_GAMEPAD in keys


class GamepadDevice:
    """ゲームパッドのevdevデバイスラッパー."""

    def __init__(self, device: evdev.InputDevice, profile: str) -> None:
        """デバイスを初期化.

        Args:
            device: evdevのInputDeviceインスタンス
            profile: プロファイル名 (例: "DualShock4", "Generic")
        """
        self._device = device
        self._profile = profile
        self._connected = True

    @staticmethod
    def detect(path: str | None = None) -> GamepadDevice | None:
        """接続されたゲームパッドを検出.

        vendor/product IDが登録済みのデバイスを優先し、
        無ければBTN_GAMEPADを持つ最初のデバイスをGenericとして使う。

        Args:
            path: 指定した場合はそのデバイスノードを直接開く

        Returns:
            検出されたデバイス。見つからなければNone
        """
        _, device_mapping = load_all_profiles()

        if path is not None:
            device = evdev.InputDevice(path)
            key = (device.info.vendor, device.info.product)
            profile = device_mapping.get(key, GENERIC_PROFILE)
            logger.info("Opened %s (%s) as %s", device.path, device.name, profile)
            return GamepadDevice(device, profile)

        devices = [evdev.InputDevice(p) for p in evdev.list_devices()]
        found = None
        fallback = None

        for device in devices:
            if _is_sub_node(device):
                continue

            key = (device.info.vendor, device.info.product)
            if key in device_mapping:
                found = (device, device_mapping[key])
                break
            if fallback is None and _is_gamepad(device):
                fallback = (device, GENERIC_PROFILE)

        result = found or fallback

        # 使わないデバイスを閉じる
        for device in devices:
            if result is None or device is not result[0]:
                device.close()

        if result is None:
            logger.warning("No gamepad found among %d input devices", len(devices))
            return None

        device, profile = result
        logger.info("Detected %s (%s) as %s", device.path, device.name, profile)
        return GamepadDevice(device, profile)

    def capabilities(self) -> DeviceCapabilities:
        """デバイス情報を取得.

        プロファイルが combined_trigger を指定し、かつデバイスが
        trigger_secondary軸を持たない場合のみ合算トリガー軸として扱う。
        それ以外は2軸トリガー（2軸目が無ければR2は常に0）。
        """
        profile = get_profile(self._profile)
        caps = self._device.capabilities(absinfo=False)
        abs_codes = caps.get(ecodes.EV_ABS, [])
        key_codes = caps.get(ecodes.EV_KEY, [])

        secondary = profile["axes"].get("trigger_secondary")
        combined = profile["combined_trigger"] and secondary not in abs_codes
        hat_x = profile["pov"].get("hat_x")

        result = DeviceCapabilities(
            has_secondary_trigger_axis=not combined,
            name=self._device.name,
            vendor_id=self._device.info.vendor,
            product_id=self._device.info.product,
            num_axes=len(abs_codes),
            num_buttons=len(key_codes),
            has_pov=hat_x is not None and hat_x in abs_codes,
            profile=self._profile,
        )
        logger.debug("Capabilities: %s", result)
        return result

    def has_axis(self, code: int) -> bool:
        """軸をデバイスが持っているか."""
        caps = self._device.capabilities(absinfo=False)
        return code in caps.get(ecodes.EV_ABS, [])

    def axis_range(self, code: int) -> tuple[int, int]:
        """軸の(最小値, 最大値)を取得."""
        info = self._device.absinfo(code)
        return info.min, info.max

    def axis_value(self, code: int) -> int:
        """軸の現在値を取得."""
        return self._device.absinfo(code).value

    def is_connected(self) -> bool:
        """デバイスが接続中かどうかを確認.

        Returns:
            接続中ならTrue、切断されていればFalse
        """
        if not self._connected:
            return False
        try:
            # デバイスのファイルディスクリプタが有効かチェック
            self._device.fd
            return True
        except (OSError, ValueError):
            return False

    def read_event(self) -> evdev.InputEvent | None:
        """evdevイベントを1つ読む（ノンブロッキング対応）.

        読み取りでOSErrorが出た場合は切断扱いにする。

        Returns:
            読み取ったイベント。イベントがなければNone
        """
        try:
            return self._device.read_one()
        except BlockingIOError:
            return None
        except OSError as e:
            if self._connected:
                logger.warning("Device %s disconnected: %s", self.path, e)
            self._connected = False
            return None

    def close(self) -> None:
        """デバイスを閉じる."""
        self._device.close()

    @property
    def profile(self) -> str:
        """プロファイル名を取得."""
        return self._profile

    @property
    def name(self) -> str:
        """デバイス名を取得."""
        return self._device.name

    @property
    def path(self) -> str:
        """デバイスパスを取得."""
        return self._device.path
