"""normalizerモジュールの単体テスト."""

import pytest

from core_gamepad.normalizer import (
    apply_deadzone,
    decode_pov,
    normalize,
    scale_stick,
    split_triggers,
    unpack_buttons,
)
from core_gamepad.state import (
    AXIS_CENTER,
    AXIS_MAX,
    DIGITAL_INPUTS,
    POV_NEUTRAL,
    DeviceCapabilities,
    GamepadState,
    RawSample,
)


DUAL = DeviceCapabilities(has_secondary_trigger_axis=True)
COMBINED = DeviceCapabilities(has_secondary_trigger_axis=False)


def _sample(**overrides) -> RawSample:
    """全軸中立のサンプルに指定値を上書きしたものを作る."""
    axes = {
        "left_x": AXIS_CENTER,
        "left_y": AXIS_CENTER,
        "right_x": AXIS_CENTER,
        "right_y": AXIS_CENTER,
        "trigger_primary": 0,
        "trigger_secondary": 0,
    }
    axes.update(overrides.pop("axes", {}))
    return RawSample(axes=axes, **overrides)


class TestDisconnected:
    """未接続サンプルのテスト."""

    def test_disconnected_returns_default_state(self):
        """connected=Falseならデフォルト状態がそのまま返ること."""
        sample = _sample(
            axes={"left_x": 0, "trigger_primary": AXIS_MAX},
            button_mask=0xFFF,
            pov=0,
            connected=False,
        )
        state = normalize(sample, DUAL)

        assert state == GamepadState()
        assert state.connected is False
        assert not state.is_any_pressed()
        assert all(value == 0.0 for value in state.analog.values())


class TestStickScaling:
    """スティックの正規化・デッドゾーン処理テスト."""

    def test_center_maps_to_zero(self):
        """中央値32767 -> 0.0."""
        assert apply_deadzone(scale_stick(AXIS_CENTER)) == 0.0

    def test_full_deflection_maps_to_exactly_one(self):
        """最大まで倒すとデッドゾーン処理後もちょうど±1.0になること."""
        assert apply_deadzone(scale_stick(0)) == -1.0
        assert apply_deadzone(scale_stick(AXIS_MAX)) == 1.0

    def test_values_inside_deadzone_are_zero(self):
        """中央±15%未満は0.0になること."""
        offset = int(AXIS_CENTER * 0.14)
        state = normalize(
            _sample(axes={
                "left_x": AXIS_CENTER + offset,
                "left_y": AXIS_CENTER - offset,
            }),
            DUAL,
        )
        assert state.analog["left_x"] == 0.0
        assert state.analog["left_y"] == 0.0

    def test_deadzone_rescales_remaining_range(self):
        """デッドゾーン外は0から1に引き伸ばされること."""
        assert apply_deadzone(0.15) == pytest.approx(0.0)
        assert apply_deadzone(0.575) == pytest.approx(0.5)
        assert apply_deadzone(-0.575) == pytest.approx(-0.5)

    def test_all_raw_values_stay_in_range(self):
        """0-65535の全域で-1.0~1.0に収まること."""
        for raw in range(0, AXIS_MAX + 1, 97):
            value = apply_deadzone(scale_stick(raw))
            assert -1.0 <= value <= 1.0
        assert -1.0 <= apply_deadzone(scale_stick(AXIS_MAX)) <= 1.0

    def test_custom_deadzone(self):
        """deadzone引数が反映されること."""
        offset = int(AXIS_CENTER * 0.2)
        sample = _sample(axes={"right_x": AXIS_CENTER + offset})

        assert normalize(sample, DUAL).analog["right_x"] > 0.0
        assert normalize(sample, DUAL, deadzone=0.3).analog["right_x"] == 0.0


class TestTriggers:
    """トリガー軸の判別テスト."""

    def test_dual_axis_independent(self):
        """2軸方式ではL2/R2が独立して0.0~1.0になること."""
        left, right = split_triggers(
            {"trigger_primary": AXIS_MAX, "trigger_secondary": 0}, True
        )
        assert left == 1.0
        assert right == 0.0

        left, right = split_triggers(
            {"trigger_primary": AXIS_MAX, "trigger_secondary": AXIS_MAX}, True
        )
        assert left == 1.0
        assert right == 1.0

    def test_dual_axis_missing_secondary_reads_zero(self):
        """2軸方式で2軸目が無ければR2は0.0."""
        _, right = split_triggers({"trigger_primary": 100}, True)
        assert right == 0.0

    def test_combined_axis_center_is_neutral(self):
        """合算方式で中央±1000以内は両方0.0."""
        for raw in (AXIS_CENTER, AXIS_CENTER + 1000, AXIS_CENTER - 1000):
            assert split_triggers({"trigger_primary": raw}, False) == (0.0, 0.0)

    def test_combined_axis_high_side_is_left(self):
        """合算方式で65535方向はL2."""
        assert split_triggers({"trigger_primary": AXIS_MAX}, False) == (1.0, 0.0)

    def test_combined_axis_low_side_is_right(self):
        """合算方式で0方向はR2."""
        assert split_triggers({"trigger_primary": 0}, False) == (0.0, 1.0)

    def test_combined_axis_never_both_nonzero(self):
        """合算方式ではL2とR2が同時に0より大きくならないこと."""
        for raw in range(0, AXIS_MAX + 1, 61):
            left, right = split_triggers({"trigger_primary": raw}, False)
            assert left * right == 0
            assert 0.0 <= left <= 1.0
            assert 0.0 <= right <= 1.0

    def test_combined_axis_ignores_secondary(self):
        """合算方式では2軸目の値を使わないこと."""
        state = normalize(
            _sample(axes={
                "trigger_primary": AXIS_CENTER,
                "trigger_secondary": AXIS_MAX,
            }),
            COMBINED,
        )
        assert state.analog["L2"] == 0.0
        assert state.analog["R2"] == 0.0


class TestTriggerButtons:
    """トリガーのボタン判定テスト."""

    def test_threshold_is_strict(self):
        """ちょうど0.5ではオフ、超えたらオンになること."""
        # 2軸方式で primary / 65535 が 0.5 ちょうどになる値は無いので合算方式で確認
        # (raw - 32767) / 32768 == 0.5 -> raw == 49151
        state = normalize(_sample(axes={"trigger_primary": 49151}), COMBINED)
        assert state.analog["L2"] == 0.5
        assert state.buttons["L2"] is False

        state = normalize(_sample(axes={"trigger_primary": 49152}), COMBINED)
        assert state.buttons["L2"] is True

    def test_buttons_follow_trigger_values(self):
        """L2/R2ボタンは常にトリガー値から決まること."""
        for primary in range(0, AXIS_MAX + 1, 4099):
            for secondary in range(0, AXIS_MAX + 1, 8191):
                for caps in (DUAL, COMBINED):
                    state = normalize(
                        _sample(axes={
                            "trigger_primary": primary,
                            "trigger_secondary": secondary,
                        }),
                        caps,
                    )
                    assert state.buttons["L2"] == (state.analog["L2"] > 0.5)
                    assert state.buttons["R2"] == (state.analog["R2"] > 0.5)

    def test_raw_bits_do_not_set_trigger_buttons(self):
        """ボタンのビットからL2/R2がオンにならないこと."""
        state = normalize(_sample(button_mask=0xFFFFFFFF), DUAL)
        assert state.buttons["L2"] is False
        assert state.buttons["R2"] is False


class TestPov:
    """十字キー(POV)のテスト."""

    def test_up_only(self):
        """POV 0 -> 上のみ."""
        assert decode_pov(0) == {
            "dpad_up": True,
            "dpad_right": False,
            "dpad_down": False,
            "dpad_left": False,
        }

    def test_up_right_diagonal(self):
        """POV 4500 (45度) -> 上と右."""
        dpad = decode_pov(4500)
        assert dpad["dpad_up"] and dpad["dpad_right"]
        assert not dpad["dpad_down"] and not dpad["dpad_left"]

    def test_right_down_diagonal(self):
        """POV 13500 (135度) -> 右と下."""
        dpad = decode_pov(13500)
        assert dpad["dpad_right"] and dpad["dpad_down"]
        assert not dpad["dpad_up"] and not dpad["dpad_left"]

    def test_down_left_and_left_up_diagonals(self):
        """225度と315度も隣り合う2方向がオンになること."""
        dpad = decode_pov(22500)
        assert dpad["dpad_down"] and dpad["dpad_left"]
        dpad = decode_pov(31500)
        assert dpad["dpad_left"] and dpad["dpad_up"]

    def test_sub_degree_truncated(self):
        """度未満は切り捨てて判定すること (45.99度 -> 45度)."""
        dpad = decode_pov(4599)
        assert dpad["dpad_up"] and dpad["dpad_right"]

    @pytest.mark.parametrize("pov", [POV_NEUTRAL, -1, 36000])
    def test_neutral_values(self, pov):
        """未入力値・範囲外は全てオフ."""
        assert not any(decode_pov(pov).values())

    def test_opposites_never_both_on(self):
        """反対方向が同時にオンにならないこと."""
        for pov in range(0, 35901, 50):
            dpad = decode_pov(pov)
            assert not (dpad["dpad_up"] and dpad["dpad_down"])
            assert not (dpad["dpad_left"] and dpad["dpad_right"])
            assert sum(dpad.values()) in (1, 2)


class TestButtons:
    """ボタンのビット展開テスト."""

    def test_bit_positions(self):
        """各ビットが決まった入力に対応すること."""
        expected = [
            "face_down", "face_right", "face_left", "face_up",
            "L1", "R1", "select", "start",
            "L3", "R3", "extra1", "extra2",
        ]
        for bit, name in enumerate(expected):
            buttons = unpack_buttons(1 << bit)
            assert buttons[name] is True
            assert sum(buttons.values()) == 1

    def test_higher_bits_ignored(self):
        """12ビット目以降は無視されること."""
        assert not any(unpack_buttons(1 << 12).values())

    def test_state_contains_all_digital_inputs(self):
        """正規化結果に全デジタル入力が揃っていること."""
        state = normalize(_sample(button_mask=1 << 7, pov=0), DUAL)
        assert set(state.buttons) == set(DIGITAL_INPUTS)
        assert state.buttons["start"] is True
        assert state.buttons["dpad_up"] is True
        assert state.is_any_pressed()


class TestRawEcho:
    """デバッグ用生値のテスト."""

    def test_raw_values_are_passed_through(self):
        """生値・ビットフラグ・POVがそのまま保持されること."""
        sample = _sample(axes={"left_x": 1234}, button_mask=0x81, pov=9000)
        state = normalize(sample, DUAL)

        assert state.connected is True
        assert state.raw_axes["left_x"] == 1234
        assert state.raw_buttons == 0x81
        assert state.raw_pov == 9000
