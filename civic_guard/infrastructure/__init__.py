"""Infrastructure adapters: reference data, devices, media, AI services"""
