__version__ = "0.1.0"

from typing import Any, Dict, List, Optional, Union

import numpy as np

from .config.settings import DEFAULT_FEATURE_PARAMS, DEFAULT_PROBABILITY_MODE
from .data.label_loader import load_rois
from .engine.context import ExtractionContext
from .engine.errors import FeatureConfigurationError
from .engine.feature_manager import ManagerConfig
from .processing.feature_table import collect_feature_table
from .utils.log_record import initialize_logging


def process_labels(
        intensity_image: np.ndarray,
        label_image: np.ndarray,
        methods: Optional[List[str]] = DEFAULT_FEATURE_PARAMS['features_methods'],
        num_workers: Optional[Union[str, int]] = DEFAULT_FEATURE_PARAMS['features_num_workers'],
        batch_size: Optional[int] = DEFAULT_FEATURE_PARAMS['features_batch_size'],
        probability_mode: Optional[str] = DEFAULT_FEATURE_PARAMS['features_probability_mode'],
        report: str = DEFAULT_FEATURE_PARAMS['features_report'],
) -> Dict[str, Any]:
    import time

    start_time = time.time()

    logger, memory_handler = initialize_logging(report)
    logger.info("Starting ROI feature extraction")

    config = ManagerConfig(
        max_workers=None if num_workers in (None, "auto") else int(num_workers),
        batch_size=batch_size,
        probability_mode=probability_mode or DEFAULT_PROBABILITY_MODE,
        enabled_methods=methods,
    )

    try:
        with ExtractionContext(config) as context:
            load_rois(intensity_image, label_image, context.store)
            summary = context.run()
            features = collect_feature_table(context.store, context.manager.provided_features())

        processing_time = time.time() - start_time
        logger.info(f"Processing completed successfully in {processing_time:.2f} seconds")

        return {
            'success': True,
            'features': features,
            'labels_processed': summary['labels'],
            'features_extracted': features.shape[1],
            'failures': summary['failures'],
            'processing_time': processing_time,
            'perf': summary['perf'],
            'logs': memory_handler.get_logs() if memory_handler else [],
        }

    except FeatureConfigurationError as e:
        logger.error(f"Feature configuration is invalid: {e}")
        raise

    except Exception as e:
        processing_time = time.time() - start_time
        logger.error(f"Processing failed with error: {e}")

        return {
            'success': False,
            'features': None,
            'labels_processed': 0,
            'features_extracted': 0,
            'failures': [],
            'processing_time': processing_time,
            'perf': {},
            'logs': memory_handler.get_logs() if memory_handler else [],
            'error': str(e),
        }


__all__ = [
    'process_labels',
    '__version__',
]
