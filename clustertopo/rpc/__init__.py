"""Transport capabilities used by the stored-function discoverer."""

from clustertopo.rpc.stored_function_caller import StoredFunctionCaller

__all__ = ["StoredFunctionCaller"]
