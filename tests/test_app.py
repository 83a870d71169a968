"""
Tests for the application shell: stack, key dispatch, cleanup and the run loop.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from clusage.ui.app import EVENT_KEYPRESS, TerminalApp
from clusage.ui.component import Component
from clusage.ui.keyboard import KeyEvent


class Screen(Component):
    def __init__(self, name="screen", claims=()):
        super().__init__()
        self.name = name
        self.claims = set(claims)
        self.keys = []
        self.destroyed = False
        self.initialised = False

    def init(self):
        self.initialised = True

    def render(self):
        return [self.name]

    def handle_key(self, event):
        self.keys.append(event.name)
        if event.name in self.claims:
            self.mark_dirty()
            return True
        return False

    def destroy(self):
        self.destroyed = True
        super().destroy()


@pytest.fixture
def app():
    return TerminalApp(renderer=MagicMock(), keyboard=MagicMock())


class TestStack:
    """Push and pop manage focus, lifecycle and footers."""

    def test_push_activates_component(self, app):
        """The pushed component is initialised, focused and on top."""
        first, second = Screen("first"), Screen("second")
        app.push(first, footer="one")
        app.push(second)

        assert app.current_component is second
        assert second.initialised and second.is_focused()
        assert not first.is_focused()
        assert app.footer == "one"

    def test_pop_restores_previous_footer(self, app):
        """Popping returns to the screen below with its own footer."""
        first, second = Screen("first"), Screen("second")
        app.push(first, footer="calendar keys")
        app.push(second, footer="detail keys")

        assert app.pop() is second
        assert second.destroyed
        assert app.current_component is first and first.is_focused()
        assert app.footer == "calendar keys"

    def test_pop_last_component_exits(self, app):
        """With one screen left, pop exits instead of emptying the stack."""
        only = Screen()
        app.push(only)
        app.running = True

        assert app.pop() is None
        assert not app.running
        assert app.current_component is only
        assert not only.destroyed

    def test_set_footer_updates_active_screen(self, app):
        """A new footer is remembered for the active screen."""
        first, second = Screen(), Screen()
        app.push(first, footer="a")
        app.push(second, footer="b")
        app.set_footer("b2")
        app.pop()
        app.push(Screen())
        assert app.footer == "a"


class TestKeyDispatch:
    """Keys go to the active component; unclaimed exit keys pop."""

    def test_exit_key_offered_to_component_first(self, app):
        """A component that claims Escape keeps the stack intact."""
        bottom, top = Screen(), Screen(claims={"escape"})
        app.push(bottom)
        app.push(top)

        app.handle_key_press(KeyEvent("escape"))
        assert top.keys == ["escape"]
        assert app.current_component is top

    def test_unclaimed_exit_key_pops(self, app):
        """An exit key the component ignores pops the screen."""
        bottom, top = Screen(), Screen()
        app.push(bottom)
        app.push(top)

        app.handle_key_press(KeyEvent("q"))
        assert app.current_component is bottom
        assert top.destroyed

    def test_regular_key_renders_when_dirty(self, app):
        """A handled key that dirties the component triggers a paint."""
        screen = Screen(claims={"x"})
        app.push(screen)
        app.running = True
        app.renderer.paint.reset_mock()

        app.handle_key_press(KeyEvent("x"))
        app.renderer.paint.assert_called_once_with(["screen"])
        assert not screen.is_dirty()

    def test_component_error_exits_app(self, app):
        """An exception from a component stops the run with that error."""
        class Broken(Screen):
            def handle_key(self, event):
                raise ValueError("broken")

        app.push(Broken())
        app.handle_key_press(KeyEvent("x"))
        assert not app.running

    def test_keypress_listeners(self, app):
        """Listeners registered with on() see every key until removed."""
        seen = []
        app.push(Screen())
        app.on(EVENT_KEYPRESS, seen.append)
        app.handle_key_press(KeyEvent("a"))
        app.off(EVENT_KEYPRESS, seen.append)
        app.handle_key_press(KeyEvent("b"))
        assert [event.name for event in seen] == ["a"]


class TestRendering:
    """Painting and resize handling."""

    def test_render_skipped_when_not_running(self, app):
        """Nothing is painted before the app runs."""
        app.push(Screen())
        app.renderer.paint.assert_not_called()

    def test_render_paints_footer(self, app):
        """The footer is painted after the body."""
        app.push(Screen("body"), footer="keys")
        app.running = True
        app.render()
        app.renderer.paint.assert_called_with(["body"])
        app.renderer.paint_footer.assert_called_with("keys")

    def test_resize_marks_everything_dirty(self, app):
        """A resize dirties every stacked component and forces a full redraw."""
        first, second = Screen(), Screen()
        app.push(first)
        app.push(second)
        first.mark_clean()
        second.mark_clean()

        app.handle_resize()
        assert first.is_dirty()
        app.renderer.invalidate.assert_called_once()

    def test_dirty_marks_are_coalesced(self, app):
        """Several dirty marks before the next loop turn schedule one repaint."""
        screen = Screen()
        app.push(screen)
        app.running = True
        app._loop = MagicMock()

        screen.mark_dirty()
        screen.mark_dirty()
        app._loop.call_soon.assert_called_once()


class TestCleanup:
    """Cleanup runs every step and re-raises the first failure."""

    def test_every_step_runs_after_failure(self, app):
        """A failing keyboard restore does not skip the remaining steps."""
        screen = Screen()
        app.push(screen)
        app.keyboard.disable.side_effect = OSError("tty gone")

        with pytest.raises(OSError, match="tty gone"):
            app.cleanup()

        assert screen.destroyed
        assert app.component_stack == []
        app.renderer.exit_alt_screen.assert_called_once()

    def test_no_alt_screen(self):
        """Without the alternate screen there is nothing to leave."""
        app = TerminalApp(use_alt_screen=False, renderer=MagicMock(), keyboard=MagicMock())
        app.cleanup()
        app.renderer.exit_alt_screen.assert_not_called()


class TestRun:
    """The run coroutine sets up and tears down the terminal."""

    def test_run_until_exit(self, app):
        """Exit resolves the run; the terminal is restored afterwards."""
        screen = Screen()

        async def scenario():
            app.push(screen)
            asyncio.get_running_loop().call_soon(app.exit)
            await app.run()

        asyncio.run(scenario())

        app.renderer.enter_alt_screen.assert_called_once()
        app.keyboard.enable.assert_called_once()
        app.keyboard.attach.assert_called_once()
        app.keyboard.detach.assert_called_once()
        app.keyboard.disable.assert_called_once()
        app.renderer.exit_alt_screen.assert_called_once()
        assert screen.destroyed
        assert not app.running

    def test_exit_with_error_raises(self, app):
        """An error passed to exit surfaces from run."""

        async def scenario():
            app.push(Screen())
            asyncio.get_running_loop().call_soon(app.exit, RuntimeError("failed"))
            await app.run()

        with pytest.raises(RuntimeError, match="failed"):
            asyncio.run(scenario())
        app.keyboard.disable.assert_called_once()

    def test_cannot_run_twice(self, app):
        """A running app refuses a second run."""
        app.running = True
        with pytest.raises(RuntimeError):
            asyncio.run(app.run())
