import grpc

try:
    grpc.enable_fork_support()
except Exception as e:  # pylint: disable=broad-exception-caught
    # Fails when gRPC is already initialized or the platform lacks support.
    print(f"INFO: gRPC fork support not enabled (from conftest.py): {e}")
