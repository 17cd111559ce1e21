import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import Receive, Scope, Send

from api.dependencies import bootstrap, cleanup_dependencies, init_dependencies
from api.error_handlers import register_exception_handlers
from api.routes import currency, health, proxy, websockets
from config.settings import get_settings
from infrastructure.monitoring.logger import EventType, event_extra, setup_logging

logger = logging.getLogger(__name__)


settings = get_settings()


class ProxyExemptCORSMiddleware(CORSMiddleware):
	"""CORS for the converter API. The proxy route answers its own preflights."""

	async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
		if scope['type'] == 'http' and scope['path'] == proxy.PROXY_PATH:
			await self.app(scope, receive, send)
			return
		await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
	setup_logging(settings.LOG_DIRECTORY, settings.LOG_LEVEL, settings.LOG_TO_FILE)
	logger.info(
		'Starting Currency Converter API...',
		extra=event_extra(EventType.SERVICE_LIFECYCLE, phase='startup'),
	)

	init_dependencies(settings)
	await bootstrap()

	logger.info('Application ready', extra=event_extra(EventType.SERVICE_LIFECYCLE, phase='ready'))

	yield

	logger.info('Shutting down...', extra=event_extra(EventType.SERVICE_LIFECYCLE, phase='shutdown'))
	await cleanup_dependencies()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
	ProxyExemptCORSMiddleware,
	allow_origins=['*'],
	allow_methods=['GET', 'POST', 'OPTIONS'],
	allow_headers=['Content-Type'],
)

app.include_router(currency.router)
app.include_router(proxy.router)
app.include_router(websockets.router)
app.include_router(health.router)
register_exception_handlers(app)


def run() -> None:
	uvicorn.run('api.main:app', host='0.0.0.0', port=8000, reload=settings.DEBUG)
