"""covpipe - coverage build, aggregation and upload pipeline for Rust crates."""
