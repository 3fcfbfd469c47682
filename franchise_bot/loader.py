import asyncio

import orjson
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.fsm.storage.memory import MemoryStorage

from franchise_bot.settings import settings

loop = asyncio.new_event_loop()
asyncio.set_event_loop(loop)

storage = MemoryStorage()
dispatcher = Dispatcher(storage=storage)

session = AiohttpSession(json_loads=orjson.loads)
bot = Bot(
    settings.BOT_TOKEN,
    default=DefaultBotProperties(parse_mode="HTML"),
    session=session,
)
