import pytest

from klctl.commands import Command, UpdateField
from klctl.controller import HubController
from klctl.devices import DeviceType
from klctl.exceptions import MalformedReply, ProtocolRejection, ReplyTimeout, TransportError
from klctl.types import ProtocolVersion


@pytest.mark.asyncio
async def test_execute_returns_successful_reply(make_transport):
    transport = make_transport("KL/0.3 201 Set lamp")

    async with HubController(transport) as controller:
        reply = await controller.execute(Command.SET("lamp", "power", "on"))

    assert reply.status == 201
    assert transport.written == ["SET lamp POWER ON KL/0.3", "Q"]
    assert transport.close_calls == 1


@pytest.mark.asyncio
async def test_execute_raises_on_rejection(make_transport):
    transport = make_transport("KL/0.3 406 No such device")

    with pytest.raises(ProtocolRejection) as excinfo:
        async with HubController(transport) as controller:
            await controller.toggle("porch")

    assert excinfo.value.verb == "TOGGLE"
    assert excinfo.value.status == 406
    assert str(excinfo.value) == "No such device"
    assert excinfo.value.reply.line == "KL/0.3 406 No such device"
    # the session still ends with the quit line
    assert transport.written == ["TOGGLE porch KL/0.3", "Q"]
    assert transport.close_calls == 1


@pytest.mark.asyncio
async def test_send_command_does_not_check_status(make_transport):
    transport = make_transport("KL/0.3 505 Hub is full")
    async with HubController(transport) as controller:
        reply = await controller.send_command(Command.DELETE("porch"))
    assert reply.status == 505


@pytest.mark.asyncio
async def test_quit_sent_once_even_when_closed_twice(make_transport):
    transport = make_transport()
    controller = HubController(transport)
    async with controller:
        pass
    await controller.close()

    assert transport.written == ["Q"]
    assert transport.close_calls == 1


@pytest.mark.asyncio
async def test_malformed_reply_propagates_and_closes(make_transport):
    transport = make_transport("garbage")

    with pytest.raises(MalformedReply):
        async with HubController(transport) as controller:
            await controller.toggle("porch")

    assert transport.written[-1] == "Q"
    assert transport.close_calls == 1


@pytest.mark.asyncio
async def test_protocol_version_suffix(make_transport):
    transport = make_transport("KL/0.1 200 OK")
    async with HubController(transport, version=ProtocolVersion.parse("0.1")) as controller:
        await controller.transmit_code(5592371, 189)
    assert transport.written[0] == "TRANSMIT 5592371 189 KL/0.1"


@pytest.mark.asyncio
async def test_list_devices_reads_announced_count(make_transport):
    transport = make_transport(
        "KL/0.3 204 Number of Devices 2",
        "porch 5592371 5592380 189",
        "lamp tasmota_lamp 4",
        "left over",
    )
    async with HubController(transport) as controller:
        lines = await controller.list_devices()

    assert lines == ["porch 5592371 5592380 189", "lamp tasmota_lamp 4"]
    assert transport.replies == ["left over"]


@pytest.mark.asyncio
async def test_list_devices_without_count_reads_to_sentinel(make_transport):
    transport = make_transport("KL/0.1 200 Devices", "porch", "lamp", ".")
    async with HubController(transport) as controller:
        assert await controller.list_devices() == ["porch", "lamp"]


@pytest.mark.asyncio
async def test_list_devices_empty(make_transport):
    transport = make_transport("KL/0.3 204 Number of Devices 0")
    async with HubController(transport) as controller:
        assert await controller.list_devices() == []


@pytest.mark.asyncio
async def test_list_body_cut_short(make_transport):
    transport = make_transport("KL/0.3 204 Number of Devices 3", "porch", "lamp")

    with pytest.raises(TransportError, match="after 2 lines"):
        async with HubController(transport) as controller:
            await controller.list_devices()

    assert transport.close_calls == 1


@pytest.mark.asyncio
async def test_list_rejection_skips_body(make_transport):
    transport = make_transport("KL/0.3 500 Internal error", "porch")
    with pytest.raises(ProtocolRejection):
        async with HubController(transport) as controller:
            await controller.list_devices()
    assert transport.replies == ["porch"]


@pytest.mark.asyncio
async def test_status_reads_to_sentinel(make_transport):
    transport = make_transport("KL/0.3 206 Status lamp", "POWER ON", "DIMMER 40", ".")
    async with HubController(transport) as controller:
        lines = await controller.status("lamp")

    assert lines == ["POWER ON", "DIMMER 40"]
    assert transport.written == ["STATUS lamp KL/0.3", "Q"]


@pytest.mark.asyncio
async def test_status_without_sentinel_is_cut_short(make_transport):
    transport = make_transport("KL/0.3 206 Status lamp", "POWER ON")
    with pytest.raises(TransportError, match="expected sentinel"):
        async with HubController(transport) as controller:
            await controller.status("lamp")


@pytest.mark.asyncio
async def test_read_timeout(silent_transport):
    transport = silent_transport
    with pytest.raises(ReplyTimeout):
        async with HubController(transport, read_timeout=0.05) as controller:
            await controller.toggle("porch")
    assert transport.written == ["TOGGLE porch KL/0.3", "Q"]


@pytest.mark.asyncio
async def test_read_block_timeout_is_not_rewrapped(silent_transport):
    transport = silent_transport
    async with HubController(transport, read_timeout=0.05) as controller:
        with pytest.raises(ReplyTimeout):
            await controller.read_block(2)


@pytest.mark.asyncio
async def test_write_on_closed_transport_raises(make_transport):
    controller = HubController(make_transport())
    with pytest.raises(TransportError):
        await controller.write(Command.LIST())


@pytest.mark.asyncio
async def test_open_failure_propagates(make_transport):
    transport = make_transport(fail_open=True)
    with pytest.raises(TransportError):
        async with HubController(transport):
            pass
    assert transport.written == []


@pytest.mark.asyncio
async def test_helpers_encode_their_requests(make_transport):
    transport = make_transport(
        "KL/0.3 205 Transmitted",
        "KL/0.3 202 Added",
        "KL/0.3 203 Deleted",
        "KL/0.3 208 Renamed",
        "KL/0.3 210 Refreshed",
    )
    async with HubController(transport) as controller:
        await controller.transmit("tasmota_lamp", "ON")
        await controller.add("strip", "tasmota_strip", DeviceType.POWERSTRIP, "4")
        await controller.delete("porch")
        await controller.update(UpdateField.NAME, "lamp", "desk")
        await controller.update(UpdateField.STATE, "lamp")

    assert transport.written == [
        "TRANSMIT tasmota_lamp ON KL/0.3",
        "ADD strip tasmota_strip 1 4 KL/0.3",
        "DELETE porch KL/0.3",
        "UPDATE NAME lamp desk KL/0.3",
        "UPDATE STATE lamp KL/0.3",
        "Q",
    ]
