"""Tests for ScanModeRouter and the View handler."""

from __future__ import annotations

import asyncio

from boxscan.core import scan_router
from boxscan.core.decode_cooldown import DecodeCooldownFilter
from boxscan.core.errors import TransientNetworkError
from boxscan.core.notifications import ERROR, Notifier
from boxscan.core.place_in import PlaceInChain
from boxscan.core.scan_router import ScanModeRouter, ViewHandler
from boxscan.models.scan import DecodeEvent, ScanMode
from fakes import BOX, ITEM, FakeFeedback, FakeInventory, FakeNavigator, label

NEW_LABEL = "c0h.de/11111111-1111-1111-1111-111111111111"


def _router(*items, inactivity_sec: float = 90.0):
    inventory = FakeInventory(*items)
    notifier = Notifier()
    navigator = FakeNavigator()
    feedback = FakeFeedback()
    router = ScanModeRouter(
        view_handler=ViewHandler(inventory, notifier=notifier),
        place_in_chain=PlaceInChain(inventory, notifier=notifier),
        navigator=navigator,
        feedback=feedback,
        cooldown=DecodeCooldownFilter(cooldown_sec=5.0, grace_sec=5.0),
        notifier=notifier,
        inactivity_sec=inactivity_sec,
    )
    return router, inventory, navigator, feedback, notifier


# ---------------------------------------------------------------
# View mode
# ---------------------------------------------------------------

def test_unknown_label_in_view_mode_navigates_to_create() -> None:
    router, _, navigator, _, _ = _router()

    outcome = asyncio.run(router.on_decoded(NEW_LABEL, 0.0))

    assert outcome == scan_router.NAVIGATE
    assert len(navigator.intents) == 1
    intent = navigator.intents[0]
    assert intent.kind == scan_router.CREATE
    assert intent.item_id == "11111111-1111-1111-1111-111111111111"


def test_known_label_navigates_to_detail() -> None:
    router, _, navigator, _, _ = _router(BOX)

    asyncio.run(router.on_decoded(label(BOX), 0.0))

    assert [(i.kind, i.item_id) for i in navigator.intents] == [(scan_router.DETAIL, BOX.id)]


def test_foreign_code_is_ignored_without_lookup() -> None:
    router, inventory, navigator, feedback, notifier = _router()

    outcome = asyncio.run(router.on_decoded("4006381333931", 0.0))

    assert outcome == scan_router.IGNORED
    assert inventory.lookups == []
    assert navigator.intents == []
    assert notifier.latest() is None
    # Still an accepted decode, so feedback fired
    assert feedback.beeps == 1


def test_lookup_error_in_view_mode_surfaces_notice_only() -> None:
    router, inventory, navigator, _, _ = _router(BOX)
    inventory.lookup_errors[BOX.id] = TransientNetworkError("unreachable")

    outcome = asyncio.run(router.on_decoded(label(BOX), 0.0))

    assert outcome == scan_router.IGNORED
    assert navigator.intents == []
    assert router.notice is not None and router.notice.level == ERROR


# ---------------------------------------------------------------
# Cooldown and feedback
# ---------------------------------------------------------------

def test_feedback_fires_once_per_accepted_decode() -> None:
    router, inventory, navigator, feedback, _ = _router(BOX)

    async def scenario() -> list[str]:
        return [await router.on_decoded(label(BOX), t) for t in (0.0, 0.1, 0.2, 3.0, 5.5)]

    outcomes = asyncio.run(scenario())

    assert outcomes.count(scan_router.COOLDOWN) == 3
    assert feedback.flashes == feedback.beeps == 2
    assert len(inventory.lookups) == 2
    assert len(navigator.intents) == 2


def test_decode_event_entry_point() -> None:
    router, _, navigator, _, _ = _router(BOX)

    asyncio.run(router.on_event(DecodeEvent(payload=label(BOX), observed_at=1.0)))

    assert navigator.intents[0].item_id == BOX.id


# ---------------------------------------------------------------
# Mode switching
# ---------------------------------------------------------------

def test_switch_to_view_clears_holding_without_store() -> None:
    router, inventory, _, _, _ = _router(ITEM, BOX)
    router.set_mode(ScanMode.PLACE_IN)

    asyncio.run(router.on_decoded(label(ITEM), 0.0))
    assert router.status()["holding"]["id"] == ITEM.id

    router.set_mode("view")

    assert router.mode == ScanMode.VIEW
    assert router.status()["holding"] is None
    assert inventory.stores == []


def test_place_in_through_router() -> None:
    router, inventory, _, _, _ = _router(ITEM, BOX)
    router.set_mode(ScanMode.PLACE_IN)

    async def scenario() -> list[str]:
        return [await router.on_decoded(label(ITEM), 0.0), await router.on_decoded(label(BOX), 1.0)]

    assert asyncio.run(scenario()) == ["held", "stored"]
    assert inventory.stores == [(ITEM.id, BOX.id)]
    assert router.status()["holding"]["id"] == BOX.id


def test_setting_same_mode_keeps_chain() -> None:
    router, _, _, _, _ = _router(ITEM)
    router.set_mode(ScanMode.PLACE_IN)
    asyncio.run(router.on_decoded(label(ITEM), 0.0))

    router.set_mode(ScanMode.PLACE_IN)

    assert router.status()["holding"]["id"] == ITEM.id


def test_mode_switch_clears_notice() -> None:
    router, _, _, _, notifier = _router()
    notifier.error("boom")
    assert router.notice is not None

    router.set_mode(ScanMode.PLACE_IN)

    assert router.notice is None


def test_view_result_after_mode_switch_is_discarded() -> None:
    router, inventory, navigator, _, _ = _router(BOX)

    async def scenario() -> str:
        inventory.gate = asyncio.Event()
        task = asyncio.create_task(router.on_decoded(label(BOX), 0.0))
        await asyncio.sleep(0)
        router.set_mode(ScanMode.PLACE_IN)
        inventory.gate.set()
        return await task

    assert asyncio.run(scenario()) == scan_router.STALE
    assert navigator.intents == []
    assert router.status()["holding"] is None


# ---------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------

def test_place_in_decodes_are_serialized() -> None:
    router, inventory, _, _, _ = _router(ITEM, BOX)
    router.set_mode(ScanMode.PLACE_IN)

    async def scenario() -> list[str]:
        inventory.gate = asyncio.Event()
        first = asyncio.create_task(router.on_decoded(label(ITEM), 0.0))
        second = asyncio.create_task(router.on_decoded(label(BOX), 0.1))
        for _ in range(5):
            await asyncio.sleep(0)
        # Second lookup has not started while the first is in flight
        assert inventory.lookups == [ITEM.id]
        inventory.gate.set()
        return [await first, await second]

    assert asyncio.run(scenario()) == ["held", "stored"]
    assert inventory.lookups == [ITEM.id, BOX.id]
    assert inventory.stores == [(ITEM.id, BOX.id)]


# ---------------------------------------------------------------
# Inactivity
# ---------------------------------------------------------------

def test_inactivity_tracks_last_accepted_decode() -> None:
    router, _, _, _, _ = _router(BOX, inactivity_sec=90.0)

    asyncio.run(router.on_decoded(label(BOX), 1000.0))

    assert router.is_inactive(1089.0) is False
    assert router.is_inactive(1090.0) is True
