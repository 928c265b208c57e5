"""
Core image processing modules for film negative conversion.

This package contains the fundamental algorithms for:
- Loading 16-bit scans and camera RAW negatives
- Film base (mask) cast removal
- Per-channel gamma correction from measured profiles
- Per-channel level normalization
- Inversion
- Gamma calibration from a curve chart
"""
