from aiogram import Bot
from aiogram.types import BotCommand

DEFAULT_COMMANDS: list[BotCommand] = [
    BotCommand(command="start", description="홈"),
    BotCommand(command="brands", description="브랜드 둘러보기"),
    BotCommand(command="saved", description="찜한 브랜드"),
    BotCommand(command="consultations", description="상담 이력"),
    BotCommand(command="manage", description="상담 관리 (매니저)"),
    BotCommand(command="profile", description="내 정보"),
    BotCommand(command="login", description="로그인"),
    BotCommand(command="logout", description="로그아웃"),
    BotCommand(command="help", description="도움말"),
]


async def setup_default_commands(bot: Bot) -> None:
    """Ensures the bot has up-to-date default commands."""
    current_commands = await bot.get_my_commands()
    if current_commands != DEFAULT_COMMANDS:
        await bot.set_my_commands(DEFAULT_COMMANDS)
