"""Treatment domain - dosing plans and their lifecycle"""
