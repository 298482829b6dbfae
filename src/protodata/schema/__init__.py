"""Schema graph of compiled protobuf files and its descriptor loader."""
