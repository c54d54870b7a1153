"""
Parquet export of benchmark results.
"""

import os
import logging
from typing import Mapping, Optional
from datetime import datetime

import pandas as pd

from common.models import ID

logger = logging.getLogger(__name__)


class ResultsParquetExporter:
    """Writes result snapshots to Parquet files for later analysis.

    Attributes:
        output_dir: Directory where Parquet files will be saved
    """

    def __init__(self, output_dir: str = "results"):
        """Initialize the exporter.

        Args:
            output_dir: Directory for saving Parquet files (default: 'results')
        """
        self.output_dir: str = output_dir

        # Ensure output directory exists
        os.makedirs(output_dir, exist_ok=True)

    @staticmethod
    def to_dataframe(snapshot, file_test_sizes: Mapping[ID, int]) -> pd.DataFrame:
        """One row per reported result, sorted by file test, operation, endpoint."""
        data = []
        for key in sorted(snapshot.keys()):
            result = snapshot.get(*key)
            data.append({
                'file_test_id': key.file_test_id,
                'operation': str(key.operation),
                'endpoint_id': key.endpoint_id,
                'size_bytes': file_test_sizes.get(key.file_test_id, 0),
                'start_ts': result.start_time,
                'duration_s': result.duration,
                'success': result.success,
                'error': result.error,
            })
        return pd.DataFrame(data, columns=[
            'file_test_id', 'operation', 'endpoint_id', 'size_bytes',
            'start_ts', 'duration_s', 'success', 'error',
        ])

    def save_to_file(self, snapshot, file_test_sizes: Mapping[ID, int],
                     filename_prefix: str = "perftest") -> Optional[str]:
        """Save a snapshot to a Parquet file.

        Args:
            snapshot: ResultSnapshot to export
            file_test_sizes: Configured payload size of each file test
            filename_prefix: Prefix for the generated filename (default: 'perftest')

        Returns:
            Path to the saved file, or None if there are no results
        """
        if not len(snapshot):
            return None

        logger.info(f"Saving {len(snapshot)} results to file")
        df = self.to_dataframe(snapshot, file_test_sizes)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{filename_prefix}_{timestamp}.parquet"
        filepath = os.path.join(self.output_dir, filename)

        df.to_parquet(filepath, index=False)

        return filepath
