"""
Generate a sample meter reading CSV for MeteringFeed.replay
"""

import numpy as np
import pandas as pd
from datetime import datetime, timedelta

def generate_sample_readings(ticks=1200, interval_seconds=3, output_file='sample_readings.csv'):
    """Generate a day-shaped sequence of rooftop solar meter readings"""

    start = datetime(2024, 6, 1, 6, 0, 0)
    rng = np.random.default_rng(42)

    rows = []
    for i in range(ticks):
        ts = start + timedelta(seconds=i * interval_seconds)

        # Solar bell curve over the run, plus some cloud noise
        daylight = np.sin(np.pi * i / ticks)
        noise = rng.normal(1.0, 0.15)
        kwh = np.clip(0.1 + 1.1 * daylight * noise, 0.1, 1.199)

        rows.append({
            'timestamp': ts.strftime('%Y-%m-%d %H:%M:%S'),
            'kwh': round(float(kwh), 3),
        })

    df = pd.DataFrame(rows)
    df.to_csv(output_file, index=False)

    print(f"Generated {len(df)} readings")
    print(f"Total kWh: {df['kwh'].sum():.3f}")
    print(f"Min/Max kWh: {df['kwh'].min():.3f} / {df['kwh'].max():.3f}")
    print(f"Saved to: {output_file}")

    return df

if __name__ == "__main__":
    generate_sample_readings()
