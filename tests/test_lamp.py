"""Test the dual-channel reconciler."""
import itertools

import pytest

from custom_components.beurer_light.beurer.exceptions import WriteError
from custom_components.beurer_light.beurer.lamp import (
    ATTRIBUTES,
    LampController,
)
from custom_components.beurer_light.beurer.protocol import (
    Channel,
    ChannelUpdate,
    encode,
)
from custom_components.beurer_light.beurer.state import LampState


@pytest.fixture
def lamp(transport):
    return LampController(transport)


def test_defaults(lamp):
    state = lamp.state
    assert lamp.get_on() is False
    assert state.white_brightness == 50
    assert state.color_brightness == 50
    assert (lamp.get_hue(), lamp.get_saturation()) == (0, 0)
    assert state.active_channel == Channel.WHITE
    assert state.provisional is True


class TestSetOn:
    """Tests for switching the lamp on and off."""

    @pytest.mark.asyncio
    async def test_turn_on_selects_white(self, lamp, transport):
        await lamp.set_on(True)

        assert transport.frames == [encode([0, 55, 1, 0, 85])]
        assert lamp.state.white_on is True
        assert lamp.state.color_on is False
        assert lamp.get_on() is True

    @pytest.mark.asyncio
    async def test_turn_on_while_color_on_is_noop(self, transport):
        state = LampState(color_on=True, hue=90, color_provisional=False)
        lamp = LampController(transport, state)
        before = LampState(**vars(state))

        await lamp.set_on(True)

        assert transport.frames == []
        assert lamp.state == before

    @pytest.mark.asyncio
    async def test_turn_off_while_color_on_selects_color(self, transport):
        lamp = LampController(transport, LampState(color_on=True))

        await lamp.set_on(False)

        assert transport.frames == [encode([0, 53, 2, 0, 85])]
        assert lamp.state.color_on is False
        assert lamp.state.white_on is False
        assert lamp.state.active_channel == Channel.COLOR

    @pytest.mark.asyncio
    async def test_turn_off_while_white_on_selects_white(self, transport):
        lamp = LampController(transport, LampState(white_on=True))

        await lamp.set_on(False)

        assert transport.frames == [encode([0, 53, 1, 0, 85])]
        assert lamp.get_on() is False

    @pytest.mark.asyncio
    async def test_optimistic_state_kept_on_write_error(self, lamp, transport):
        transport.error = WriteError("boom")

        with pytest.raises(WriteError):
            await lamp.set_on(True)

        assert lamp.state.white_on is True
        assert lamp.state.white_provisional is True


class TestBrightness:
    """Tests for brightness routing."""

    @pytest.mark.asyncio
    async def test_white_channel_when_color_off(self, lamp, transport):
        await lamp.set_brightness(80)

        assert transport.frames == [encode([0, 49, 1, 80, 0, 85])]
        assert lamp.state.white_brightness == 80
        assert lamp.state.color_brightness == 50
        assert lamp.get_brightness() == 80

    @pytest.mark.asyncio
    async def test_color_channel_when_color_on(self, transport):
        lamp = LampController(transport, LampState(color_on=True))

        await lamp.set_brightness(20)

        assert transport.frames == [encode([0, 49, 2, 20, 0, 85])]
        assert lamp.state.color_brightness == 20
        assert lamp.state.white_brightness == 50
        assert lamp.get_brightness() == 20

    @pytest.mark.asyncio
    async def test_value_clamped(self, lamp, transport):
        await lamp.set_brightness(140)
        assert lamp.state.white_brightness == 100
        assert transport.frames == [encode([0, 49, 1, 100, 0, 85])]

    def test_defaults_to_white_when_off(self, transport):
        lamp = LampController(transport, LampState(white_brightness=10, color_brightness=90))
        assert lamp.get_brightness() == 10


class TestColor:
    """Tests for the RGB push routine."""

    @pytest.mark.asyncio
    async def test_set_hue_enables_color_first(self, lamp, transport):
        lamp.state.saturation = 100

        await lamp.set_hue(120)

        assert transport.frames == [
            encode([4, 55, 2, 0, 85]),
            encode([0, 50, 0, 255, 0, 0, 85]),
        ]
        assert lamp.state.color_on is True
        assert lamp.state.white_on is False
        assert lamp.get_hue() == 120

    @pytest.mark.asyncio
    async def test_no_enable_when_color_already_on(self, transport):
        lamp = LampController(transport, LampState(color_on=True, hue=240))

        await lamp.set_saturation(100)

        assert transport.frames == [encode([0, 50, 0, 0, 255, 0, 85])]
        assert lamp.get_saturation() == 100

    @pytest.mark.asyncio
    async def test_color_turns_white_off(self, transport):
        lamp = LampController(transport, LampState(white_on=True))

        await lamp.set_hue_saturation(0, 100)

        assert lamp.state.white_on is False
        assert lamp.state.color_on is True
        assert lamp.state.active_channel == Channel.COLOR
        assert transport.frames[-1] == encode([0, 50, 255, 0, 0, 0, 85])

    @pytest.mark.asyncio
    async def test_set_hue_saturation_pushes_once(self, transport):
        lamp = LampController(transport, LampState(color_on=True))

        await lamp.set_hue_saturation(240, 100)

        assert transport.frames == [encode([0, 50, 0, 0, 255, 0, 85])]


class TestInvariant:
    """Tests for the mutual exclusion of the two channels."""

    OPERATIONS = [
        ("set_on", True),
        ("set_on", False),
        ("set_brightness", 70),
        ("set_hue", 200),
        ("set_saturation", 60),
    ]

    @pytest.mark.asyncio
    async def test_channels_never_both_on(self, transport):
        for sequence in itertools.product(self.OPERATIONS, repeat=4):
            lamp = LampController(transport)
            for method, value in sequence:
                await getattr(lamp, method)(value)
                assert not (lamp.state.white_on and lamp.state.color_on), sequence


class TestApplyUpdate:
    """Tests for folding notifications into the model."""

    def test_color_update_leaves_white_untouched(self, transport):
        lamp = LampController(transport, LampState(white_on=False, white_brightness=33))

        changed = lamp.apply_update(
            ChannelUpdate(Channel.COLOR, is_on=True, brightness=70, hue=120, saturation=100)
        )

        state = lamp.state
        assert changed is True
        assert (state.color_on, state.color_brightness) == (True, 70)
        assert (state.hue, state.saturation) == (120, 100)
        assert (state.white_on, state.white_brightness) == (False, 33)
        assert state.white_provisional is True
        assert state.color_provisional is False

    def test_white_update_leaves_color_untouched(self, transport):
        lamp = LampController(transport, LampState(hue=10, saturation=20, color_brightness=40))

        lamp.apply_update(ChannelUpdate(Channel.WHITE, is_on=True, brightness=90))

        state = lamp.state
        assert (state.white_on, state.white_brightness) == (True, 90)
        assert (state.hue, state.saturation, state.color_brightness) == (10, 20, 40)
        assert state.color_on is False
        assert state.white_provisional is False
        assert lamp.get_brightness() == 90

    def test_order_independent(self, transport):
        white = ChannelUpdate(Channel.WHITE, is_on=False, brightness=60)
        color = ChannelUpdate(Channel.COLOR, is_on=True, brightness=25, hue=240, saturation=100)

        first = LampController(transport)
        first.apply_update(white)
        first.apply_update(color)
        second = LampController(transport)
        second.apply_update(color)
        second.apply_update(white)

        assert first.state == second.state
        assert first.state.provisional is False

    def test_unchanged_update_reports_no_change(self, transport):
        lamp = LampController(transport)
        update = ChannelUpdate(Channel.WHITE, is_on=False, brightness=50)
        assert lamp.apply_update(update) is False


class TestAttributes:
    """Tests for the per-attribute capability interface."""

    @pytest.mark.asyncio
    async def test_attribute_set_and_get(self, lamp, transport):
        on = lamp.attribute("on")
        await on.set(True)
        assert on.get() is True
        assert transport.frames == [encode([0, 55, 1, 0, 85])]

    def test_all_attributes_available(self, lamp):
        for name in ATTRIBUTES:
            assert lamp.attribute(name).name == name

    def test_unknown_attribute(self, lamp):
        with pytest.raises(KeyError):
            lamp.attribute("color_temp")
