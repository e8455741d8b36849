"""
Quality checks for mined histories and built data sets.
"""

import numpy as np
import pandas as pd

from .config import LABEL_COL
from .segmentation import ChunkSegmenter
from .models import RepoHistory


def diagnose_history(history: RepoHistory) -> dict:
    """Assess how well a mined history supports group features"""
    print(f"\n{'='*60}")
    print("HISTORY DIAGNOSTIC")
    print(f"{'='*60}")

    segmenter = ChunkSegmenter(history)
    chunk_sizes = []
    fixed_chunks = 0
    for entity in history.entities():
        if entity in history.failures:
            continue
        for chunk in segmenter.split(entity, history.list_versions(entity)):
            chunk_sizes.append(len(chunk))
            fixed_chunks += chunk.is_fixed

    total_commits = len(history.commits)
    fix_ratio = len(history.fixes) / max(total_commits, 1)
    sizes = np.array(chunk_sizes) if chunk_sizes else np.zeros(1)
    fixed_ratio = fixed_chunks / max(len(chunk_sizes), 1)

    quality_score = 0
    issues = []

    # Fix ratio (ideal: 10-30%)
    if 0.10 <= fix_ratio <= 0.30:
        quality_score += 25
    elif 0.05 <= fix_ratio <= 0.40:
        quality_score += 15
    else:
        issues.append(f"Fix ratio {fix_ratio:.1%} outside ideal range (10-30%)")

    # Chunks long enough to show accumulation
    if np.median(sizes) >= 3:
        quality_score += 25
    elif np.median(sizes) >= 2:
        quality_score += 15
    else:
        issues.append(f"Median chunk size {np.median(sizes):.0f} - groups rarely grow past one commit")

    # Some chunks should end in a fix
    if 0.2 <= fixed_ratio <= 0.8:
        quality_score += 25
    elif fixed_ratio > 0:
        quality_score += 15
    else:
        issues.append("No chunk ends in a fix - every row would be clean")

    if len(history) >= 20:
        quality_score += 25
    elif len(history) >= 10:
        quality_score += 15
    else:
        issues.append(f"Only {len(history)} tracked files - may not provide enough samples")

    print(f"\nMetrics:")
    print(f"  Commits:             {total_commits:>6}")
    print(f"  Fix commits:         {len(history.fixes):>6} ({fix_ratio:.1%})")
    print(f"  Tracked files:       {len(history):>6}")
    print(f"  Authors:             {len(history.authors):>6}")
    print(f"  Chunks:              {len(chunk_sizes):>6} ({fixed_ratio:.1%} fix-terminated)")
    print(f"  Chunk size:          {sizes.mean():>6.1f} mean, {np.median(sizes):.0f} median, {sizes.max()} max")
    print(f"\nQuality Score: {quality_score}/100")

    if issues:
        print(f"\nIssues:")
        for issue in issues:
            print(f"  - {issue}")

    return {
        'quality_score': quality_score,
        'fix_ratio': fix_ratio,
        'chunks': len(chunk_sizes),
        'fixed_ratio': fixed_ratio,
        'mean_chunk_size': float(sizes.mean()),
        'issues': issues,
    }


def diagnose_dataset(df: pd.DataFrame, label_col: str = LABEL_COL) -> dict:
    """Label balance and degenerate columns of a built data set"""
    print(f"\n{'='*60}")
    print("DATASET DIAGNOSTIC")
    print(f"{'='*60}")

    buggy = int(df[label_col].sum()) if len(df) else 0
    features = df.select_dtypes(include=[np.number]).drop(columns=[label_col], errors='ignore')
    constant = [c for c in features.columns if features[c].nunique() <= 1]
    non_finite = int((~np.isfinite(features.to_numpy(dtype=float))).sum()) if len(df) else 0

    print(f"Dataset: {len(df)} samples ({buggy} buggy, {len(df) - buggy} clean)")
    if constant:
        print(f"  Constant columns: {constant}")
    if non_finite:
        print(f"  WARNING: {non_finite} non-finite values")

    return {
        'samples': len(df),
        'buggy': buggy,
        'buggy_ratio': buggy / max(len(df), 1),
        'constant_columns': constant,
        'non_finite': non_finite,
    }
