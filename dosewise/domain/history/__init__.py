"""History domain - doses actually taken"""
