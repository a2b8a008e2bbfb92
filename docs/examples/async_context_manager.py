import asyncio

from klctl.controller import HubController
from klctl.learning import CodeLearner
from klctl.transport import TCPTransport


async def main():
    # One session per run: the controller sends Q and closes the socket on exit
    async with HubController(transport=TCPTransport("192.168.7.123", 1155), read_timeout=30) as controller:
        print("Press the ON or OFF button of the remote...")
        request = await CodeLearner(controller).add_by_scan("porch")
        print(f"Stored porch: on={request.on_code} off={request.off_code} pulse={request.pulse}")

    async with HubController(transport=TCPTransport("192.168.7.123", 1155)) as controller:
        for line in await controller.list_devices():
            print(line)

asyncio.run(main())
