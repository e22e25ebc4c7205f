"""Remote storage layer: KODO client, range-write coordinator and the driver."""
