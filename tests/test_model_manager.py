import asyncio
import unittest

from _fakes import FakeLoader, FakeModel, RecordingStatus
from pose_kit.config import ModelConfig
from PoseNet_Demo.errors import ModelLoadFailure
from PoseNet_Demo.model_manager import ModelManager
from PoseNet_Demo.state import SessionState


class TestModelManager(unittest.IsolatedAsyncioTestCase):
    async def test_previous_model_disposed_before_load(self) -> None:
        events = []
        old = FakeModel("old", events)
        state = SessionState(active_model=old)
        loader = FakeLoader(events)
        manager = ModelManager(loader, RecordingStatus())

        handle = await manager.reload_model(state)

        self.assertIs(state.active_model, handle)
        self.assertTrue(old.disposed)
        self.assertEqual(events, ["dispose:old", "load:1"])

    async def test_reload_twice_keeps_one_model(self) -> None:
        events = []
        state = SessionState()
        manager = ModelManager(FakeLoader(events), RecordingStatus())

        first = await manager.reload_model(state)
        second = await manager.reload_model(state)

        self.assertTrue(first.disposed)
        self.assertFalse(second.disposed)
        self.assertIs(state.active_model, second)
        self.assertEqual(events, ["load:1", "dispose:m1", "load:2"])

    async def test_loading_ui_brackets_load(self) -> None:
        status = RecordingStatus()
        manager = ModelManager(FakeLoader([]), status)
        await manager.reload_model(SessionState())
        self.assertEqual(status.events, [("loading", True), ("loading", False)])

    async def test_failed_load_raises_and_closes_loading_ui(self) -> None:
        events = []
        old = FakeModel("old", events)
        state = SessionState(active_model=old)
        status = RecordingStatus()
        loader = FakeLoader(events, [FileNotFoundError("weights missing")])
        manager = ModelManager(loader, status)

        with self.assertRaises(ModelLoadFailure) as ctx:
            await manager.reload_model(state)

        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)
        self.assertIsNone(state.active_model)
        self.assertTrue(old.disposed)
        self.assertFalse(status.loading)
        self.assertEqual(status.events[-1], ("loading", False))

    async def test_loader_receives_session_config(self) -> None:
        loader = FakeLoader([])
        state = SessionState()
        state.set_architecture("ResNet50")
        await ModelManager(loader, RecordingStatus()).reload_model(state)
        self.assertEqual(loader.configs, [ModelConfig.for_architecture("ResNet50")])

    async def test_superseded_reload_keeps_current_model(self) -> None:
        events = []
        current = FakeModel("current", events)
        state = SessionState(active_model=current)
        status = RecordingStatus()
        loader = FakeLoader(events)

        handle = await ModelManager(loader, status).reload_model(state, is_current=lambda: False)

        self.assertIsNone(handle)
        self.assertIs(state.active_model, current)
        self.assertFalse(current.disposed)
        self.assertEqual(loader.count, 0)
        self.assertEqual(status.events, [])

    async def test_current_model_waits_for_reload(self) -> None:
        events = []
        gate = asyncio.Event()
        old = FakeModel("old", events)
        state = SessionState(active_model=old)

        class HeldLoader(FakeLoader):
            async def __call__(self, config):
                await gate.wait()
                return await super().__call__(config)

        manager = ModelManager(HeldLoader(events), RecordingStatus())
        reload = asyncio.create_task(manager.reload_model(state))
        await asyncio.sleep(0)
        self.assertIsNone(state.active_model)

        lookup = asyncio.create_task(manager.current_model(state))
        await asyncio.sleep(0)
        self.assertFalse(lookup.done())

        gate.set()
        handle = await reload
        self.assertIs(await lookup, handle)
        self.assertTrue(old.disposed)

    async def test_dispose_clears_active_model(self) -> None:
        events = []
        state = SessionState(active_model=FakeModel("m", events))
        ModelManager.dispose(state)
        ModelManager.dispose(state)
        self.assertIsNone(state.active_model)
        self.assertEqual(events, ["dispose:m"])


if __name__ == "__main__":
    unittest.main()
