"""Domain layer: models, state, reducers and read-side views"""
