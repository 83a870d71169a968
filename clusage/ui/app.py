"""
Application shell: a stack of components driven by an asyncio event loop.

The topmost component is active. Key presses arrive through the event loop's
reader callback, resizes through SIGWINCH, and components that finish an
asynchronous load mark themselves dirty, which schedules a coalesced repaint.
"""

#region Imports
import asyncio
import signal
from collections import defaultdict
from typing import Any, Callable, Optional

from clusage.ui.component import Component
from clusage.ui.keyboard import KeyEvent, RawKeyboard, is_exit_key
from clusage.ui.renderer import ScreenRenderer
from clusage.utils.logger import get_logger
#endregion


#region Constants
logger = get_logger(__name__)

EVENT_KEYPRESS = "keypress"
EVENT_RESIZE = "resize"
EVENT_RENDER = "render"
#endregion


#region Terminal App


class TerminalApp:
    """
    Owns the component stack, the renderer and the keyboard for one run.

    Args:
        use_alt_screen: Draw on the terminal's alternate screen
        renderer: ScreenRenderer to paint with (default: stdout)
        keyboard: RawKeyboard to read from (default: stdin)
    """

    def __init__(
        self,
        use_alt_screen: bool = True,
        renderer: Optional[ScreenRenderer] = None,
        keyboard: Optional[RawKeyboard] = None,
    ):
        self.use_alt_screen = use_alt_screen
        self.renderer = renderer or ScreenRenderer()
        self.keyboard = keyboard or RawKeyboard()
        self.component_stack: list[Component] = []
        self.running = False
        self.footer = ""
        self._footers: list[str] = []
        self._listeners: dict[str, list[Callable[[Any], None]]] = defaultdict(list)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._exit_future: Optional[asyncio.Future] = None
        self._render_pending = False
        self._keyboard_attached = False
        self._resize_attached = False

    # Stack

    @property
    def current_component(self) -> Optional[Component]:
        return self.component_stack[-1] if self.component_stack else None

    def push(self, component: Component, footer: Optional[str] = None) -> None:
        """
        Make a component the active screen.

        Args:
            component: Component to show
            footer: Footer for this screen (default: keep the current footer)
        """
        current = self.current_component
        if current is not None:
            current.set_focus(False)

        component.dirty_listener = self._on_component_dirty
        component.init()
        component.set_focus(True)
        self.component_stack.append(component)
        if footer is not None:
            self.footer = footer
        self._footers.append(self.footer)
        logger.debug("Pushed %s (depth %d)", type(component).__name__, len(self.component_stack))
        self.render()

    def pop(self) -> Optional[Component]:
        """
        Destroy the active screen and return to the one below.

        With one screen left the application exits instead.

        Returns:
            The popped component, or None if the app exited
        """
        if len(self.component_stack) <= 1:
            self.exit()
            return None

        popped = self.component_stack.pop()
        self._footers.pop()
        popped.set_focus(False)
        popped.destroy()

        current = self.current_component
        self.footer = self._footers[-1]
        if current is not None:
            current.set_focus(True)
        logger.debug("Popped %s (depth %d)", type(popped).__name__, len(self.component_stack))
        self.render()
        return popped

    # Lifecycle

    async def run(self) -> None:
        """
        Run until :meth:`exit` is called.

        Raises:
            RuntimeError: If the app is already running
            TerminalNotInteractiveError: If stdin is not a terminal
        """
        if self.running:
            raise RuntimeError("App is already running")

        self._loop = asyncio.get_running_loop()
        self._exit_future = self._loop.create_future()
        self.running = True
        logger.debug("Terminal app starting")

        try:
            if self.use_alt_screen:
                self.renderer.enter_alt_screen()
            else:
                self.renderer.clear_screen()

            self.keyboard.enable()
            self.keyboard.attach(self._loop, self.handle_key_press)
            self._keyboard_attached = True
            self._attach_resize()

            self.render()
            await self._exit_future
        finally:
            self.cleanup()
            logger.debug("Terminal app stopped")

    def exit(self, error: Optional[BaseException] = None) -> None:
        """Stop the run loop, optionally re-raising an error from :meth:`run`."""
        self.running = False
        if self._exit_future is not None and not self._exit_future.done():
            if error is not None:
                self._exit_future.set_exception(error)
            else:
                self._exit_future.set_result(None)

    def cleanup(self) -> None:
        """
        Restore the terminal.

        Detaches input, leaves raw mode, destroys every component, then leaves
        the alternate screen. Every step runs even if an earlier one fails;
        the first failure is re-raised at the end.
        """
        first_error: Optional[Exception] = None
        for step in (self._detach_input, self.keyboard.disable, self._destroy_components, self._restore_screen):
            try:
                step()
            except Exception as exc:
                logger.exception("Cleanup step %s failed", getattr(step, "__name__", step))
                if first_error is None:
                    first_error = exc
        self.running = False
        if first_error is not None:
            raise first_error

    def _detach_input(self) -> None:
        try:
            if self._keyboard_attached and self._loop is not None:
                self.keyboard.detach(self._loop)
                self._keyboard_attached = False
        finally:
            if self._resize_attached and self._loop is not None:
                self._loop.remove_signal_handler(signal.SIGWINCH)
                self._resize_attached = False
            self._listeners.clear()

    def _destroy_components(self) -> None:
        stack, self.component_stack = self.component_stack, []
        self._footers = []
        for component in stack:
            component.destroy()

    def _restore_screen(self) -> None:
        if self.use_alt_screen:
            self.renderer.exit_alt_screen()

    def _attach_resize(self) -> None:
        try:
            self._loop.add_signal_handler(signal.SIGWINCH, self.handle_resize)
            self._resize_attached = True
        except (NotImplementedError, RuntimeError, AttributeError) as exc:
            # Not on the main thread or no SIGWINCH: resizes are picked up on the next paint
            logger.debug("Resize signal unavailable: %s", exc)

    # Events

    def handle_key_press(self, event: KeyEvent) -> None:
        """
        Dispatch a key to the active component.

        Exit keys go to the component first; if it does not claim them the
        active screen is popped.
        """
        try:
            self.emit(EVENT_KEYPRESS, event)
            current = self.current_component

            if is_exit_key(event):
                if current is None or not current.handle_key(event):
                    self.pop()
                return

            if current is not None:
                handled = current.handle_key(event)
                if handled and current.is_dirty():
                    self.render()
        except Exception as exc:
            logger.exception("Unhandled error while handling key %r", event.name)
            self.exit(exc)

    def handle_resize(self) -> None:
        self.emit(EVENT_RESIZE, self.renderer.size)
        for component in self.component_stack:
            component.mark_dirty()
        self.renderer.invalidate()
        self.render()

    def _on_component_dirty(self, component: Component) -> None:
        if not self.running or self._loop is None or self._render_pending:
            return
        self._render_pending = True
        self._loop.call_soon(self._flush_pending_render)

    def _flush_pending_render(self) -> None:
        if self._render_pending:
            try:
                self.render()
            except Exception as exc:
                logger.exception("Render failed")
                self.exit(exc)

    # Rendering

    def render(self) -> None:
        """Paint the active component and the footer."""
        self._render_pending = False
        current = self.current_component
        if not self.running or current is None:
            return

        self.renderer.paint(current.render())
        current.mark_clean()
        if self.footer:
            self.renderer.paint_footer(self.footer)
        self.emit(EVENT_RENDER, None)

    def set_footer(self, text: str) -> None:
        """Set the footer for the active screen."""
        self.footer = text
        if self._footers:
            self._footers[-1] = text
        if self.running:
            self.renderer.paint_footer(text)

    # Listeners

    def on(self, event_type: str, listener: Callable[[Any], None]) -> None:
        self._listeners[event_type].append(listener)

    def off(self, event_type: str, listener: Callable[[Any], None]) -> None:
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event_type: str, data: Any = None) -> None:
        for listener in list(self._listeners.get(event_type, ())):
            listener(data)
#endregion
