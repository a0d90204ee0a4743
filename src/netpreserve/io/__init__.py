"""
I/O for network datasets and module preservation results.

Key Functions:
    - load_dataset: Build a NetworkDataset from CSV matrices
    - load_assignments: Read node → module assignments
    - write_preservation_result: Observed statistics, nulls and p-values
    - write_network_properties: Per-module network properties
"""

from netpreserve.io.loaders import load_assignments, load_dataset, load_matrix_csv
from netpreserve.io.writers import (
    atomic_write_json,
    atomic_write_text,
    write_network_properties,
    write_preservation_result,
)

__all__ = [
    'load_assignments',
    'load_dataset',
    'load_matrix_csv',
    'atomic_write_json',
    'atomic_write_text',
    'write_network_properties',
    'write_preservation_result',
]
