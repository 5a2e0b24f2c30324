"""メインループとGamepadReaderクラス.

2つの使い方を提供:
- ライブラリとして: イテレータプロトコルでGamepadStateをyield
- CLIモード: stdout にJSON行を出力
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
import time

from evdev import ecodes

from core_gamepad.device import GamepadDevice
from core_gamepad.edges import PRESSED
from core_gamepad.input_state import InputState, scale_to_raw
from core_gamepad.profile_loader import get_event_mapping, get_profile
from core_gamepad.session import GamepadSession
from core_gamepad.state import STICK_DEADZONE, GamepadState

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int | str = logging.INFO):
    """ルートロガーを設定（stdoutはJSON出力用なのでstderrに出す）."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 二重登録を防ぐ
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)


class GamepadReader:
    """ゲームパッドのイテレータ.

    指定周期で正規化済みのGamepadStateを返す。
    エッジ判定は session から行う。
    """

    def __init__(
        self,
        deadzone: float = STICK_DEADZONE,
        hz: float = 60.0,
        path: str | None = None,
    ):
        """デバイス検出、セッション、入力状態テーブル初期化.

        Args:
            deadzone: スティックのデッドゾーン (デフォルト: 0.15)
            hz: 読み取り周期 [Hz] (デフォルト: 60)
            path: デバイスノード。Noneなら自動検出

        Raises:
            RuntimeError: ゲームパッドが見つからない場合
        """
        # デバイス検出
        device = GamepadDevice.detect(path)
        if device is None:
            raise RuntimeError("Gamepad not found")

        self._device = device
        self._period = 1.0 / hz

        caps = device.capabilities()
        profile = get_profile(device.profile)
        self._event_mapping = get_event_mapping(profile)

        self._session = GamepadSession(caps, deadzone=deadzone)
        self._acquired = True
        self._input_state = InputState(
            combined_trigger=not caps.has_secondary_trigger_axis
        )

        # 軸の範囲を取得し、現在値で初期化
        self._axis_ranges: dict[int, tuple[int, int]] = {}
        for axis_name, code in profile["axes"].items():
            if not device.has_axis(code):
                continue
            self._axis_ranges[code] = device.axis_range(code)
            self._input_state.update_axis(
                axis_name,
                scale_to_raw(device.axis_value(code), *self._axis_ranges[code]),
            )

        # イベント受信スレッド
        self._running = False
        self._thread: threading.Thread | None = None

    @property
    def session(self) -> GamepadSession:
        """今フレーム/前フレームの組."""
        return self._session

    def __iter__(self):
        """イテレータプロトコル."""
        # イベント受信スレッドを開始
        self._running = True
        self._thread = threading.Thread(target=self._event_loop, daemon=True)
        self._thread.start()
        logger.info("Reading %s @ %.1fHz", self._device.name, 1.0 / self._period)
        return self

    def __next__(self) -> GamepadState:
        """1周期待ってから正規化済みの状態を返す.

        Returns:
            正規化済みのGamepadState

        Raises:
            StopIteration: stop()が呼ばれた場合
        """
        if not self._running:
            raise StopIteration

        time.sleep(self._period)

        # デバイス切断チェック
        connected = self._device.is_connected()
        if not connected and self._acquired:
            logger.warning("Gamepad %s lost", self._device.path)
            self._session.release()
            self._input_state.reset()
            self._acquired = False

        sample = self._input_state.snapshot(connected=connected)
        return self._session.update(sample)

    def stop(self):
        """安全停止（ニュートラル値にリセットしてから終了）."""
        self._running = False
        # 受信スレッドの終了を待ってからデバイスを閉じる
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        self._input_state.reset()
        self._device.close()
        logger.info("Reader stopped")

    def _event_loop(self):
        """イベント受信スレッド.

        evdevイベントを読み続け、input_stateを更新する。
        """
        while self._running and self._device.is_connected():
            event = self._device.read_event()
            if event is None:
                # イベントがない場合は少し待つ
                time.sleep(0.001)
                continue

            # EV_KEY(ボタン)とEV_ABS(軸・HAT)のみ処理
            if event.type not in (ecodes.EV_KEY, ecodes.EV_ABS):
                continue

            if event.code not in self._event_mapping:
                continue

            channel, channel_type = self._event_mapping[event.code]

            if channel_type == "button" and event.type == ecodes.EV_KEY:
                self._input_state.update_button(channel, event.value)

            elif channel_type == "axis" and event.type == ecodes.EV_ABS:
                dev_min, dev_max = self._axis_ranges.get(event.code, (0, 255))
                self._input_state.update_axis(
                    channel, scale_to_raw(event.value, dev_min, dev_max)
                )

            elif channel_type == "hat" and event.type == ecodes.EV_ABS:
                self._input_state.update_hat(channel, event.value)


def format_events(events: list[tuple[str, str]]) -> list[str]:
    """エッジ判定結果を "start+" / "L2-" 形式の文字列にする."""
    return [f"{name}{'+' if kind == PRESSED else '-'}" for name, kind in events]


def cli_main():
    """CLIモードのエントリーポイント.

    stdoutに1フレーム1行のJSONを出力する。
    """
    parser = argparse.ArgumentParser(description="Gamepad state reader")
    parser.add_argument(
        "--deadzone", type=float, default=STICK_DEADZONE,
        help="スティックのデッドゾーン (デフォルト: 0.15)",
    )
    parser.add_argument(
        "--hz", type=float, default=60.0,
        help="読み取りレート [Hz] (デフォルト: 60)",
    )
    parser.add_argument(
        "--device", type=str, default=None,
        help="デバイスノード (例: /dev/input/event5)。省略時は自動検出",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="ログレベル (デフォルト: INFO)",
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    _run_json_mode(args.deadzone, args.hz, args.device)


def _run_json_mode(deadzone: float, hz: float, path: str | None):
    """JSON出力モード."""
    reader = None
    try:
        reader = GamepadReader(deadzone=deadzone, hz=hz, path=path)

        for state in reader:
            output = {
                "connected": state.connected,
                "analog": dict(state.analog),
                "buttons": dict(state.buttons),
                "events": format_events(reader.session.edges()),
            }
            print(json.dumps(output), flush=True)

    except KeyboardInterrupt:
        if reader is not None:
            reader.stop()
        sys.exit(0)
    except (RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
