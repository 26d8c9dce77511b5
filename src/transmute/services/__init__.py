"""Service layer: conversion engine and operations returning ServiceResult.

Services may import from domain, formats, plugins, and config.
They must never import from commands or output.
"""
