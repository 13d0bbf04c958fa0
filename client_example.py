"""
WebSocket Room Chat Client Example
Interactive client plus scripted scenarios against a running server
"""

import asyncio
import json
import websockets
from typing import Any, List, Optional
import argparse
import sys


class ChatClient:
    """Room chat client speaking the msg_type/data protocol"""

    def __init__(self, name: str, server_url: str = "ws://localhost:8000/ws"):
        self.name = name
        self.server_url = server_url
        self.websocket: Optional[Any] = None
        self.history: List[dict] = []
        self.registered = False
        self.running = False

    async def connect(self) -> bool:
        """Connect and read the history replay"""
        try:
            self.websocket = await websockets.connect(self.server_url)
            data = json.loads(await self.websocket.recv())
        except (OSError, websockets.exceptions.WebSocketException) as e:
            print(f"❌ Connection failed: {e}")
            return False

        if data.get("msg_type") != "AllMessages":
            print(f"❌ Unexpected first frame: {data}")
            return False

        self.history = data.get("data", [])
        print(f"✅ Connected to {self.server_url} ({len(self.history)} messages in history)")
        for entry in self.history:
            print(f"   {entry['name']}: {entry['message']}")
        return True

    async def register_name(self) -> bool:
        """Claim a display name; the reply is NameRegistered or NameTaken"""
        if not self.websocket:
            return False

        await self.websocket.send(json.dumps({"msg_type": "RegisterName", "data": self.name}))
        print(f"📤 Requested name: {self.name}")

        while True:
            data = json.loads(await self.websocket.recv())
            msg_type = data.get("msg_type")

            if msg_type == "NameRegistered":
                self.registered = True
                print(f"✅ Registered as: {self.name}")
                return True
            if msg_type == "NameTaken":
                print(f"❌ Name taken: {self.name}")
                return False
            self.print_message(data)

    async def send_message(self, message: str) -> bool:
        """Send a chat line to the room"""
        if not self.websocket:
            return False

        try:
            await self.websocket.send(json.dumps({
                "msg_type": "Chat",
                "data": {"name": self.name, "message": message},
            }))
        except websockets.exceptions.ConnectionClosed as e:
            print(f"❌ Send failed: {e}")
            return False

        return True

    def print_message(self, data: dict):
        msg_type = data.get("msg_type")
        payload = data.get("data")

        if msg_type == "NewMessage":
            print(f"📨 {payload.get('name', 'unknown')}: {payload.get('message', '')}")
        elif msg_type == "Joined":
            print(f"👋 {payload}")
        elif msg_type == "AllMessages":
            print(f"📋 History replay of {len(payload)} messages")
        else:
            print(f"❓ {msg_type}: {payload}")

    async def listen_for_messages(self):
        """Print incoming frames until stopped or disconnected"""
        if not self.websocket:
            return

        while self.running:
            try:
                frame = await asyncio.wait_for(self.websocket.recv(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except websockets.exceptions.ConnectionClosed:
                print("🔌 Connection closed by server")
                break

            self.print_message(json.loads(frame))

    async def disconnect(self):
        """Disconnect from server"""
        self.running = False
        if self.websocket:
            await self.websocket.close()
            print(f"🔌 {self.name} disconnected")

    async def run_interactive(self):
        """Run interactive chat session"""
        if not await self.connect():
            return

        if not await self.register_name():
            await self.disconnect()
            return

        self.running = True
        listen_task = asyncio.create_task(self.listen_for_messages())

        try:
            print("\n🎮 Interactive mode started!")
            print("Commands: /quit, or just type your message")
            print("-" * 50)

            while self.running:
                try:
                    user_input = (await asyncio.to_thread(input, f"{self.name}> ")).strip()
                except (KeyboardInterrupt, EOFError):
                    break

                if not user_input:
                    continue
                if user_input == "/quit":
                    break
                await self.send_message(user_input)

        finally:
            self.running = False
            listen_task.cancel()
            await self.disconnect()


async def run_client(client: ChatClient, lines: List[str], start_delay: float, linger: float):
    await asyncio.sleep(start_delay)
    if not (await client.connect() and await client.register_name()):
        await client.disconnect()
        return

    client.running = True
    listen_task = asyncio.create_task(client.listen_for_messages())

    for line in lines:
        await asyncio.sleep(1)
        await client.send_message(line)

    await asyncio.sleep(linger)
    client.running = False
    listen_task.cancel()
    await client.disconnect()


async def test_scenario_1(server_url: str):
    """Scenario 1: two users chatting in the default room"""
    print("\n🧪 Scenario 1: Multi-user messaging")
    print("=" * 60)

    await asyncio.gather(
        run_client(ChatClient("alice", server_url), ["Hello everyone!", "Nice to see you"], 0, 4),
        run_client(ChatClient("bob", server_url), ["Hey Alice!"], 0.5, 4),
    )
    print("✅ Scenario 1 completed")


async def test_scenario_2(server_url: str):
    """Scenario 2: a late joiner receives the history replay"""
    print("\n🧪 Scenario 2: History replay")
    print("=" * 60)

    await run_client(ChatClient("carol", server_url), ["Anyone here?"], 0, 1)

    late = ChatClient("dave", server_url)
    if await late.connect():
        print(f"✅ dave saw {len(late.history)} earlier messages")
    await late.disconnect()
    print("✅ Scenario 2 completed")


async def test_scenario_3(server_url: str):
    """Scenario 3: name uniqueness"""
    print("\n🧪 Scenario 3: Name uniqueness")
    print("=" * 60)

    first = ChatClient("alice", server_url)
    second = ChatClient("alice", server_url)

    if await first.connect() and await first.register_name():
        if await second.connect() and not await second.register_name():
            print("✅ Second alice was rejected")

    await second.disconnect()
    await first.disconnect()
    print("✅ Scenario 3 completed")


async def main():
    """Main function with command line interface"""
    parser = argparse.ArgumentParser(description="WebSocket Room Chat Client")
    parser.add_argument("--name", default="testuser", help="Display name")
    parser.add_argument("--server", default="ws://localhost:8000/ws", help="Server URL")
    parser.add_argument("--test", choices=["1", "2", "3"], help="Run test scenario")

    args = parser.parse_args()

    if args.test == "1":
        await test_scenario_1(args.server)
    elif args.test == "2":
        await test_scenario_2(args.server)
    elif args.test == "3":
        await test_scenario_3(args.server)
    else:
        client = ChatClient(args.name, args.server)
        await client.run_interactive()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except (OSError, websockets.exceptions.WebSocketException) as e:
        print(f"❌ Client error: {e}")
        sys.exit(1)
