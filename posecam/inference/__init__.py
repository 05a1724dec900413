"""
Inference engine adapters.

The session talks to InferenceEngine only, so the YOLO backend can be swapped
(or faked in tests) without touching session logic.
"""
