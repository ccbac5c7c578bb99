"""Transforms, colour conversion, quantization, prediction, entropy coding and the compression engine."""