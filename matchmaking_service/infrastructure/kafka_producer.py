"""
Kafka producer for publishing swipe and connection events
"""
from aiokafka import AIOKafkaProducer
from typing import Optional, Dict, Any
import json
import logging
from datetime import datetime, timezone

from ..config import settings

logger = logging.getLogger(__name__)


class KafkaProducerManager:
    """Kafka producer manager for publishing events"""

    def __init__(self):
        self.producer: Optional[AIOKafkaProducer] = None

    async def start(self):
        """Start Kafka producer"""
        if not settings.KAFKA_ENABLED:
            logger.info("Kafka is disabled")
            return

        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
                value_serializer=lambda v: json.dumps(v).encode("utf-8"),
                key_serializer=lambda v: str(v).encode("utf-8") if v else None,
            )
            await self.producer.start()
            logger.info("Kafka producer started successfully")
        except Exception as e:
            logger.warning(f"Failed to start Kafka producer: {e}. Continuing without Kafka.")
            self.producer = None

    async def stop(self):
        """Stop Kafka producer"""
        if self.producer:
            await self.producer.stop()
            logger.info("Kafka producer stopped")

    async def publish_event(self, topic: str, key: str, event_data: Dict[str, Any]):
        """
        Publish event to Kafka topic

        Args:
            topic: Kafka topic name
            key: Message key (the acting user's fid)
            event_data: Event data to publish
        """
        if not self.producer:
            logger.debug(f"Kafka disabled, skipping event: {topic}")
            return

        try:
            await self.producer.send(topic, value=event_data, key=key)
            logger.info(f"Published event to {topic}: {key}")
        except Exception as e:
            logger.error(f"Error publishing event to {topic}: {e}")

    async def publish_swipe_event(self, actor_fid: int, target_fid: int, action: str):
        """Publish swipe recorded event"""
        event_data = {
            "event_type": "swipe",
            "actor_fid": actor_fid,
            "target_fid": target_fid,
            "action": action,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        await self.publish_event(
            settings.KAFKA_TOPIC_SWIPE_RECORDED, str(actor_fid), event_data
        )

    async def publish_connection_request_event(self, actor_fid: int, target_fid: int):
        """Publish connection request event (first one-sided like)"""
        event_data = {
            "event_type": "connection_request",
            "actor_fid": actor_fid,
            "target_fid": target_fid,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        await self.publish_event(
            settings.KAFKA_TOPIC_CONNECTION_REQUEST, str(actor_fid), event_data
        )

    async def publish_connection_matched_event(self, actor_fid: int, target_fid: int):
        """Publish mutual match event"""
        event_data = {
            "event_type": "connection_matched",
            "actor_fid": actor_fid,
            "target_fid": target_fid,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        await self.publish_event(
            settings.KAFKA_TOPIC_CONNECTION_MATCHED, str(actor_fid), event_data
        )


# Global producer instance
kafka_producer = KafkaProducerManager()


async def get_kafka_producer() -> KafkaProducerManager:
    """Dependency for getting Kafka producer instance"""
    return kafka_producer
