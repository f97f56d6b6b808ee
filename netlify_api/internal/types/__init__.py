"""Модели данных клиента"""
