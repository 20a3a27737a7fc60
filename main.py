import flet as ft
from voxen.app import main

if __name__ == "__main__":
    ft.app(main)
