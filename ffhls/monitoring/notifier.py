# ffhls/monitoring/notifier.py
"""
Webhook notifications for finished conversion runs
"""

import asyncio
import aiohttp
from typing import Optional, Dict, Any, Sequence
from datetime import datetime, timezone

from ffhls.monitoring.logger import get_logger

logger = get_logger('notifier')


class Notifier:
    """
    Posts run outcomes to a webhook

    Discord and Slack URLs get their native payload shapes; any other URL
    receives a plain JSON document. Delivery problems are logged, never raised.
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send(
        self,
        message: str,
        level: str = 'info',
        data: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Send notification via webhook

        Returns:
            True if the webhook accepted the payload
        """
        if not self.webhook_url:
            logger.debug("No webhook URL configured, skipping notification")
            return False

        payload = self.format_payload(message, level, data)

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.webhook_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status not in (200, 204):
                        logger.warning(
                            f"Webhook request failed with status {response.status}"
                        )
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to send notification: {e}")
            return False

        logger.debug("Notification sent successfully")
        return True

    def format_payload(
        self,
        message: str,
        level: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        url = (self.webhook_url or '').lower()
        if 'discord' in url:
            return self._format_discord(message, level, data)
        if 'slack' in url:
            return self._format_slack(message, level, data)
        return self._format_generic(message, level, data)

    @staticmethod
    def _format_discord(message: str, level: str, data: Optional[Dict[str, Any]]) -> Dict:
        colors = {
            'info': 0x3498db,
            'success': 0x2ecc71,
            'warning': 0xf39c12,
            'error': 0xe74c3c
        }

        embed = {
            'title': f'FFHLS - {level.upper()}',
            'description': message,
            'color': colors.get(level, 0x95a5a6),
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }
        if data:
            embed['fields'] = [
                {'name': key, 'value': str(value), 'inline': True}
                for key, value in data.items()
            ]

        return {'username': 'FFHLS', 'embeds': [embed]}

    @staticmethod
    def _format_slack(message: str, level: str, data: Optional[Dict[str, Any]]) -> Dict:
        emoji = {
            'info': ':information_source:',
            'success': ':white_check_mark:',
            'warning': ':warning:',
            'error': ':x:'
        }

        blocks = [{
            'type': 'section',
            'text': {
                'type': 'mrkdwn',
                'text': f"{emoji.get(level, '')} *FFHLS - {level.upper()}*\n{message}"
            }
        }]
        if data:
            blocks.append({
                'type': 'section',
                'fields': [
                    {'type': 'mrkdwn', 'text': f"*{key}:*\n{value}"}
                    for key, value in data.items()
                ]
            })

        return {'username': 'FFHLS', 'blocks': blocks}

    @staticmethod
    def _format_generic(message: str, level: str, data: Optional[Dict[str, Any]]) -> Dict:
        payload = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'message': message,
            'source': 'FFHLS'
        }
        if data:
            payload['data'] = data
        return payload

    async def notify_completion(
        self,
        source: str,
        run_id: str,
        qualities: Sequence[str],
        duration: float
    ) -> bool:
        return await self.send(
            f"HLS conversion of {source} completed",
            level='success',
            data={
                'run_id': run_id,
                'qualities': ', '.join(qualities),
                'duration': f"{duration:.1f}s"
            }
        )

    async def notify_failure(self, source: str, quality: str, error: str) -> bool:
        return await self.send(
            f"HLS conversion of {source} failed at quality {quality}: {error}",
            level='error',
            data={'quality': quality}
        )
