"""Elixir and Erlang/OTP documentation lookup for the symbol under the cursor."""

__version__ = "0.3.0"
