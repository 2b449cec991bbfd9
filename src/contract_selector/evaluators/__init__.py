from .jmes import JmesPathEvaluator

__all__ = ["JmesPathEvaluator"]
