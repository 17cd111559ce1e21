import asyncio
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.dependencies import get_rate_fetcher, get_rate_store
from application.services import RateFetcher, RateStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/api', tags=['websockets'])


@router.websocket('/ws/rates')
async def websocket_rates_endpoint(
	websocket: WebSocket,
	store: Annotated[RateStore, Depends(get_rate_store)],
	fetcher: Annotated[RateFetcher, Depends(get_rate_fetcher)],
):
	"""
	Push rate-store changes to the client.

	Messages:
	- {"type": "rates", "rates": {"USD": {"EUR": 0.9, ...}, ...}}
	- {"type": "loading", "loading": true}

	Current values are sent first, then one message per change.
	Anything the client sends is ignored.
	"""
	await websocket.accept()
	queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

	unsubscribe_rates = store.subscribe_rates(
		lambda rates: queue.put_nowait({'type': 'rates', 'rates': rates})
	)
	unsubscribe_loading = store.subscribe_loading(
		lambda loading: queue.put_nowait({'type': 'loading', 'loading': loading})
	)

	async def forward_updates() -> None:
		while True:
			message = await queue.get()
			await websocket.send_json(message)

	sender = asyncio.create_task(forward_updates())
	logger.info('WebSocket client subscribed to rate updates')

	try:
		fetcher.ensure_fresh()
		while True:
			await websocket.receive_text()
	except WebSocketDisconnect:
		logger.info('Client disconnected')
	finally:
		unsubscribe_rates()
		unsubscribe_loading()
		sender.cancel()
		await asyncio.gather(sender, return_exceptions=True)
