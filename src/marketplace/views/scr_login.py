from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from marketplace.utils.messages import UserLoginMessage
from marketplace.viewmodels import AuthState, AuthViewModel
from marketplace.views.base_screen import BaseScreen
from marketplace.views.modal_dialog import QuitDialogModal, SimpleDialogModal


class LoginScreen(BaseScreen):
    """
    Dismissed once a user is signed in and their profile is loaded.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)
        self.vm: AuthViewModel | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(placeholder="*********", password=True, id="input-login-pwd")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Forgot password", id="btn-reset")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Phone (optional)")
                    yield Input(placeholder="+1 555 0100", id="input-reg-phone")
                    yield Label("Password")
                    yield Input(placeholder="*********", password=True, id="input-reg-pwd")
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

    async def on_mount(self):
        c = self.container
        self.vm = self.own(AuthViewModel(c.auth, c.login, c.register))
        self.vm.observe(self.render_state)
        self.query_one("#input-login-email").focus()

    def render_state(self, state: AuthState) -> None:
        for btn_id in ("#btn-login", "#btn-reg", "#btn-reset"):
            self.query_one(btn_id, Button).disabled = state.is_loading
        if state.error:
            self.notify(state.error, severity="error")
            self.vm.clear_error()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    async def _enter_app(self) -> None:
        user = await self.app.state.load(self.container.users)
        if user is None:
            self.notify("Signed in, but no profile exists for this account.", severity="error")
            await self.vm.logout()
            return
        if not user.is_active:
            self.notify("This account has been deactivated.", severity="error")
            await self.vm.logout()
            self.app.state.clear()
            return
        self.notify(f"Hello {user.name or user.email}!")
        self.app.post_message(UserLoginMessage())
        self.dismiss()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input)

        if not email or not pwd.value:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        if await self.vm.login(email, pwd.value):
            await self._enter_app()
        else:
            pwd.value = ""
            pwd.focus()
            pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        phone = self.query_one("#input-reg-phone", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value

        if not name or not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        if await self.vm.register(email, pwd, name, phone):
            await self.app.push_screen_wait(SimpleDialogModal("Registration successful."))
            await self._enter_app()

    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_password_reset(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        if not email:
            self.notify("Enter your email first.", severity="warning")
            return
        await self.vm.send_password_reset(email)
        if self.vm.state.reset_token_sent:
            self.notify("Password reset instructions were sent.")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
