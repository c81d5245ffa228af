from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_SPIN = "🎰 Spin"
BTN_INVITE = "🎟 Invite"
BTN_NOTIFICATIONS = "🔔 Notifications"
BTN_WHOAMI = "👤 Me"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_SPIN)],
            [KeyboardButton(text=BTN_INVITE), KeyboardButton(text=BTN_NOTIFICATIONS)],
            [KeyboardButton(text=BTN_WHOAMI)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Choose an action…",
        selective=False,
        one_time_keyboard=False,
    )
