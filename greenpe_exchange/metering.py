"""
Metering Feed

Simulated meter that emits a generation reading every interval while it is
running. Ticks are scheduled on the session scheduler, so tests can call
``tick`` directly or move the clock instead of waiting.
"""

from typing import Callable, List, Optional

import numpy as np
import pandas as pd

from greenpe_exchange.exceptions import ValidationError
from greenpe_exchange.logging_config import logger
from greenpe_exchange.models import MeterReading
from greenpe_exchange.scheduler import ScheduledTask, SimulatedScheduler
from greenpe_exchange.settings import settings

READING_PLACES = 3


class MeteringFeed:
    """Cooperative, scheduler-driven meter simulator"""

    def __init__(
        self,
        scheduler: SimulatedScheduler,
        on_reading: Callable[[MeterReading], None],
        interval: Optional[float] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the feed.

        Args:
            scheduler: Scheduler the ticks are queued on
            on_reading: Called synchronously with every reading
            interval: Seconds between readings (default from settings)
            seed: Seed for the reading generator (default from settings)
        """
        self.scheduler = scheduler
        self.on_reading = on_reading
        self.interval = interval if interval is not None else settings.METER_INTERVAL_SECONDS
        self.rng = np.random.default_rng(seed if seed is not None else settings.METER_SEED)
        self.last_reading: Optional[MeterReading] = None
        self._next_tick: Optional[ScheduledTask] = None

    @property
    def is_running(self) -> bool:
        return self._next_tick is not None

    def start(self) -> None:
        if self.is_running:
            return
        logger.info("Meter started")
        self._schedule_next()

    def stop(self) -> None:
        """Stop the feed. The pending tick is dropped, nothing is replayed."""
        if self._next_tick is None:
            return
        self._next_tick.cancel()
        self._next_tick = None
        logger.info("Meter stopped")

    def toggle(self) -> bool:
        """Flip the running state. Returns the new state."""
        if self.is_running:
            self.stop()
        else:
            self.start()
        return self.is_running

    def sample(self) -> float:
        """Draw one reading in [METER_MIN_KWH, METER_MAX_KWH) kWh"""
        value = self.rng.uniform(settings.METER_MIN_KWH, settings.METER_MAX_KWH)
        return round(float(value), READING_PLACES)

    def tick(self, kwh: Optional[float] = None) -> MeterReading:
        """
        Emit one reading.

        Args:
            kwh: Use this amount instead of sampling one

        Returns:
            The emitted reading
        """
        amount = self.sample() if kwh is None else round(kwh, READING_PLACES)
        if amount < 0:
            raise ValidationError(f"kWh must be >= 0, got {amount}", field="kwh", value=amount)

        reading = MeterReading(kwh=amount, taken_at=self.scheduler.current_time())
        self.last_reading = reading
        logger.debug(f"Meter reading {reading.kwh} kWh")
        self.on_reading(reading)
        return reading

    def _scheduled_tick(self) -> None:
        self._next_tick = None
        self.tick()
        self._schedule_next()

    def _schedule_next(self) -> None:
        self._next_tick = self.scheduler.call_later(
            self.interval, self._scheduled_tick, name="meter-tick"
        )

    def load_readings(self, file_path: str) -> pd.DataFrame:
        """
        Load recorded readings from a CSV file.

        Expected CSV format:
        - kwh: float (energy in the tick)
        - timestamp: datetime string (optional)

        Args:
            file_path: Path to CSV file

        Returns:
            DataFrame of readings
        """
        df = pd.read_csv(file_path)
        if 'kwh' not in df.columns:
            raise ValueError(f"Expected a 'kwh' column in {file_path}, got {list(df.columns)}")
        if 'timestamp' in df.columns:
            df['timestamp'] = pd.to_datetime(df['timestamp'])
        if (df['kwh'] < 0).any():
            raise ValueError(f"Negative kWh readings found in {file_path}")
        return df

    def replay(self, readings: pd.DataFrame) -> List[MeterReading]:
        """Push recorded readings through the normal tick path, in order"""
        emitted = []
        for _, row in readings.iterrows():
            emitted.append(self.tick(float(row['kwh'])))
        logger.info(f"Replayed {len(emitted)} meter readings")
        return emitted
