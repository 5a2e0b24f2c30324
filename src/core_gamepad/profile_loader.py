"""YAMLプロファイルの読み込み・evdevコード解決モジュール."""

from __future__ import annotations

import functools
import logging
from pathlib import Path

import yaml
from evdev import ecodes

from core_gamepad.state import BUTTON_BITS, RAW_AXES

logger = logging.getLogger(__name__)

_PROFILES_DIR = Path(__file__).parent / "profiles"

# vendor/product IDで見つからないゲームパッドに使うプロファイル
GENERIC_PROFILE = "Generic"


def _resolve_ecode(value: str | int) -> int:
    """evdevコード名を整数に解決する.

    Args:
        value: evdevコード名(例: "ABS_X") または整数値

    Returns:
        evdevコードの整数値

    Raises:
        ValueError: 不明なevdevコード名の場合
    """
    if isinstance(value, int):
        return value
    code = getattr(ecodes, value, None)
    if code is None:
        raise ValueError(f"Unknown evdev code: {value}")
    return code


def _load_single(path: Path) -> tuple[str, dict, list[tuple[int, int]]]:
    """YAML 1ファイルを読み込み、プロファイルのdictを返す.

    Args:
        path: YAMLファイルのパス

    Returns:
        (profile_name, profile_dict, [(vendor_id, product_id), ...])

    Raises:
        ValueError: 未知の軸名やボタン数超過の場合
    """
    with open(path) as f:
        raw = yaml.safe_load(f)

    profile_name = raw["profile_name"]

    # デバイス一覧（Genericは空）
    device_ids = []
    for dev in raw.get("devices") or []:
        device_ids.append((dev["vendor_id"], dev["product_id"]))

    # axes
    axes = {}
    for name, code_val in raw["axes"].items():
        if name not in RAW_AXES:
            raise ValueError(f"Unknown axis: {name}")
        axes[name] = _resolve_ecode(code_val)

    # buttons（リストの順番がビット位置）
    if len(raw["buttons"]) > len(BUTTON_BITS):
        raise ValueError(
            f"Too many buttons in {profile_name}: {len(raw['buttons'])}"
        )
    buttons = [_resolve_ecode(code_val) for code_val in raw["buttons"]]

    # pov
    pov = {}
    pov_raw = raw.get("pov")
    if pov_raw:
        pov["hat_x"] = _resolve_ecode(pov_raw["hat_x"])
        pov["hat_y"] = _resolve_ecode(pov_raw["hat_y"])

    profile_dict = {
        "vendor": device_ids[0][0] if device_ids else 0,
        "axes": axes,
        "buttons": buttons,
        "pov": pov,
        "combined_trigger": bool(raw.get("combined_trigger", False)),
    }

    return profile_name, profile_dict, device_ids


@functools.cache
def load_all_profiles() -> tuple[dict, dict]:
    """profiles/ 内の全YAMLを読み込む.

    Returns:
        (profiles_dict, device_mapping_dict)
        - profiles_dict: {profile_name: profile_dict, ...}
        - device_mapping_dict: {(vendor_id, product_id): profile_name, ...}
    """
    profiles: dict[str, dict] = {}
    device_mapping: dict[tuple[int, int], str] = {}

    for yaml_path in sorted(_PROFILES_DIR.glob("*.yaml")):
        name, profile, device_ids = _load_single(yaml_path)
        profiles[name] = profile
        for vid_pid in device_ids:
            device_mapping[vid_pid] = name
        logger.debug("Loaded profile %s from %s", name, yaml_path.name)

    return profiles, device_mapping


def get_profile(name: str) -> dict:
    """プロファイル名でプロファイルを取得.

    Raises:
        ValueError: 未知のプロファイル名が指定された場合
    """
    profiles, _ = load_all_profiles()
    if name not in profiles:
        raise ValueError(f"Unknown profile: {name}")
    return profiles[name]


def get_event_mapping(profile: dict) -> dict:
    """evdevイベントコード → (チャンネル, チャンネル種別)のマッピングを返す.

    Returns:
        {evdev_code: (channel, channel_type), ...}
        channel_type は "axis", "button", "hat" のいずれか。
        "button" の channel はビット位置(int)
    """
    mapping = {}

    for axis_name, code in profile["axes"].items():
        mapping[code] = (axis_name, "axis")

    for bit, code in enumerate(profile["buttons"]):
        mapping[code] = (bit, "button")

    for hat_name, code in profile["pov"].items():
        mapping[code] = (hat_name, "hat")

    return mapping
