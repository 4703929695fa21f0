from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Label, TabbedContent, TabPane

from marketplace.utils.messages import UserLogoutMessage
from marketplace.viewmodels import AuthState, AuthViewModel, UserState, UserViewModel
from marketplace.views.base_screen import BaseScreen
from marketplace.views.modal_dialog import DialogModal

PROFILE_FIELDS = ("name", "email", "phone", "address")


class ProfileScreen(BaseScreen):
    """
    Profile editing, password change, account deletion and people search.
    """

    def __init__(self) -> None:
        super().__init__()
        self.user_vm: UserViewModel | None = None
        self.auth_vm: AuthViewModel | None = None
        self._loaded_for: str | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-profile"):
            with TabPane("Profile", id="tab-profile"):
                with Vertical(id="div-profile"):
                    for name in PROFILE_FIELDS:
                        yield Label(name.title())
                        yield Input(id=f"input-profile-{name}")
                    yield Button("Save", id="btn-save-profile", variant="primary")
            with TabPane("Security", id="tab-security"):
                with Vertical(id="div-security"):
                    yield Label("Current password")
                    yield Input(password=True, id="input-pwd-current")
                    yield Label("New password")
                    yield Input(password=True, id="input-pwd-new")
                    with Horizontal():
                        yield Button("Change Password", id="btn-change-pwd", variant="primary")
                        yield Button("Delete Account", id="btn-delete-account", variant="error")
            with TabPane("People", id="tab-people"):
                with Vertical(id="div-people"):
                    yield Input(placeholder="Search people by name...", id="input-people")
                    yield DataTable(id="table-people")
                    with Horizontal():
                        yield Button("Favorite / Unfavorite", id="btn-favorite")
                        yield Button("Block / Unblock", id="btn-block", variant="warning")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_columns("Name", "Email", "Favorite", "Blocked")

    async def bind_view_models(self) -> None:
        c = self.container
        self._loaded_for = None
        self.user_vm = self.own(
            UserViewModel(c.users, c.get_current_user, c.update_user_profile, c.search_users)
        )
        self.auth_vm = self.own(AuthViewModel(c.auth, c.login, c.register))
        self.user_vm.observe(self.render_user)
        self.auth_vm.observe(self.render_auth)
        await self.user_vm.start()

    def render_user(self, state: UserState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.user_vm.clear_error()
        user = state.user
        if user is None:
            return
        # fill the form once per user so typing is not overwritten by live updates
        if self._loaded_for != user.id:
            self._loaded_for = user.id
            for name in PROFILE_FIELDS:
                self.query_one(f"#input-profile-{name}", Input).value = getattr(user, name)

        table = self.query_one(DataTable)
        table.clear()
        for other in state.search_results:
            table.add_row(
                other.name,
                other.email,
                "yes" if other.id in user.favorites else "",
                "yes" if other.id in user.blocked_users else "",
                key=other.id,
            )

    def render_auth(self, state: AuthState) -> None:
        if state.error:
            self.notify(state.error, severity="error")
            self.auth_vm.clear_error()

    @on(Button.Pressed, "#btn-save-profile")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        values = {
            name: self.query_one(f"#input-profile-{name}", Input).value.strip()
            for name in PROFILE_FIELDS
        }
        await self.user_vm.update_profile(**values)
        if self.user_vm.state.profile_saved:
            self.app.state.user = self.user_vm.state.user
            self.notify("Profile saved.")

    @on(Button.Pressed, "#btn-change-pwd")
    @work(exclusive=True)
    async def handle_change_password(self) -> None:
        current = self.query_one("#input-pwd-current", Input)
        new = self.query_one("#input-pwd-new", Input)
        await self.auth_vm.update_password(current.value, new.value)
        if self.auth_vm.state.password_updated:
            current.value = new.value = ""
            self.notify("Password changed.")

    @on(Button.Pressed, "#btn-delete-account")
    @work(exclusive=True)
    async def handle_delete_account(self) -> None:
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete your account? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Keep",
                tone="error",
            )
        ):
            return
        password = self.query_one("#input-pwd-current", Input).value
        if await self.auth_vm.delete_account(password):
            self.post_message(UserLogoutMessage())

    @on(Input.Submitted, "#input-people")
    @work(exclusive=True, group="people")
    async def handle_people_search(self, event: Input.Submitted) -> None:
        await self.user_vm.search(event.value)

    def _highlighted_person(self) -> str | None:
        table = self.query_one(DataTable)
        if not table.row_count:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    @on(Button.Pressed, "#btn-favorite")
    @work(exclusive=True, group="people")
    async def handle_favorite(self) -> None:
        if other := self._highlighted_person():
            await self.user_vm.toggle_favorite(other)

    @on(Button.Pressed, "#btn-block")
    @work(exclusive=True, group="people")
    async def handle_block(self) -> None:
        if other := self._highlighted_person():
            await self.user_vm.toggle_block(other)
