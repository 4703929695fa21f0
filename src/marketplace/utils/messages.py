from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user asks to sign out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired once the signed-in user's profile is loaded into the app state
    """

    bubble = True


class OrderPlacedMessage(Message):
    """
    Fired after checkout stored a new order.
    The app switches to the orders screen.

    Must be posted at App level
    """

    bubble = True

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self.order_id = order_id


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
