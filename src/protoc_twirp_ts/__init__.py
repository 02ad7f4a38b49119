"""Generate TypeScript Twirp clients from protobuf service definitions."""
