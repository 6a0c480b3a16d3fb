"""Interpretation pipeline stages.

envelope -> recovery -> coercion/decoders -> validation -> fallback,
orchestrated by `result_builder.ResultBuilder`.
"""
