"""Infrastructure layer: HTTP transport and authentication"""
