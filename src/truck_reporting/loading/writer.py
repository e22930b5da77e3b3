"""
Export of query results.
"""
import os
import logging
import traceback

logger = logging.getLogger(__name__)


def export_results_to_csv(results, output_dir):
    """
    Export query results to CSV files, one per result.

    Args:
        results (dict): Result name -> DataFrame
        output_dir (str): Target directory

    Returns:
        dict: Result name -> written file path
    """
    try:
        # Create output directory if it doesn't exist
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        exported_files = {}

        for name, df in results.items():
            if df is None:
                continue
            # Empty results still get a header-only file
            file_path = os.path.join(output_dir, f"{name}.csv")
            df.to_csv(file_path, index=False)
            exported_files[name] = file_path
            logger.info(f"Exported {len(df)} rows to {file_path}")

        return exported_files
    except Exception as e:
        logger.error(f"Error exporting results to CSV: {str(e)}")
        logger.error(traceback.format_exc())
        raise
