"""Main CLI application class for the Waystation session daemon"""

import asyncio
from typing import Optional, Sequence

from rich.console import Console

from settings import EVENT_BIND_ADDRESS, EVENT_PORT
from broker import HttpCredentialBroker
from deeplink import DeepLinkRouter
from events import EventClient, EventListenerServer, ListenerUnavailable
from session import AuthError, Credential, SessionManager, SessionState
from cli.status_display import build_status_table


class SessionCLI:
    """Command line interface for the session daemon"""

    def __init__(self, debug: bool = False, console: Optional[Console] = None):
        self.debug = debug
        self.console = console or Console()
        self.manager: Optional[SessionManager] = None
        self.listener: Optional[EventListenerServer] = None
        self._unsubscribe = None
        self.client = EventClient()

        # Create event loop
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

    # Daemon

    def print_state(self, state: SessionState):
        """Subscriber that reports every session change"""
        if state is None:
            self.console.print("[yellow]Session: not authenticated[/yellow]")
            return
        user = state.user_info
        who = (user.name or user.email or user.sub) if user else "unknown user"
        self.console.print(f"[green]✓ Session: authenticated as {who}[/green]")

    def _on_navigate_home(self):
        self.console.print("[cyan]Deep link: navigate to home[/cyan]")

    def _on_reset_onboarding(self):
        self.console.print("[cyan]Deep link: reset onboarding[/cyan]")

    def _on_login_completed(self, credential: Credential):
        self.console.print("[bold green]✓ Authentication successful![/bold green]")

    async def _serve(self, login: bool):
        self.manager = SessionManager(HttpCredentialBroker())
        router = DeepLinkRouter(
            self.manager,
            on_navigate_home=self._on_navigate_home,
            on_reset_onboarding=self._on_reset_onboarding,
            on_login_completed=self._on_login_completed,
        )
        self.listener = EventListenerServer(self.manager, router)
        await self.listener.start()
        self.console.print(f"[green]✓ Listening on http://{EVENT_BIND_ADDRESS}:{EVENT_PORT}[/green]")

        await self.manager.start()
        self._unsubscribe = self.manager.subscribe(self.print_state)

        if login and not self.manager.is_authenticated():
            self.console.print("Opening login in browser...")
            try:
                await self.manager.login()
            except AuthError as e:
                self.console.print(f"[red]✗ Could not start login: {e}[/red]")

        # Runs until interrupted
        await asyncio.Event().wait()

    async def _shutdown(self):
        if self._unsubscribe:
            self._unsubscribe()
        if self.listener:
            await self.listener.stop()
        if self.manager:
            self.manager.close()

    def run(self, login: bool = False):
        """Run the session daemon until interrupted"""
        try:
            self.loop.run_until_complete(self._serve(login))
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Shutting down...[/yellow]")
        finally:
            self.loop.run_until_complete(self._shutdown())
            self.close()

    def close(self):
        """Close the event loop"""
        if not self.loop.is_closed():
            self.loop.close()

    # Commands against a running daemon

    def _call(self, coro):
        try:
            return self.loop.run_until_complete(coro)
        except ListenerUnavailable:
            self.console.print("[red]✗ Session daemon is not running[/red]")
            self.console.print("Start it first: waystation-auth run")
        except AuthError as e:
            self.console.print(f"[red]✗ {e}[/red]")
        return None

    def open_url(self, urls: Sequence[str]) -> bool:
        result = self._call(self.client.forward_deep_link(urls))
        if result is None:
            return False
        if result.get("accepted"):
            self.console.print("[green]✓ Deep link forwarded[/green]")
        else:
            self.console.print("[yellow]No URL to forward[/yellow]")
        return True

    def show_status(self) -> bool:
        status = self._call(self.client.get_session())
        if status is None:
            return False
        self.console.print(build_status_table(status))
        return True

    def login(self) -> bool:
        if self._call(self.client.login()) is None:
            return False
        self.console.print("[green]✓ Login started - complete it in your browser[/green]")
        return True

    def logout(self) -> bool:
        if self._call(self.client.logout()) is None:
            return False
        self.console.print("[green]✓ Logged out[/green]")
        return True

    def refresh(self) -> bool:
        status = self._call(self.client.refresh())
        if status is None:
            return False
        self.console.print("[green]✓ Session refreshed[/green]")
        self.console.print(build_status_table(status))
        return True
