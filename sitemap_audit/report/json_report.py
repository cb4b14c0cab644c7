# sitemap_audit/report/json_report.py

"""
Генерация JSON-отчёта для проекта sitemap_audit.

Сериализация объекта AuditReport в файл.
"""
import json
from pathlib import Path

from sitemap_audit.aggregator import AuditReport


def render_json(report: AuditReport, output_path: Path | str) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект AuditReport с результатами аудита
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from sitemap_audit.report.json_report import render_json
    report_path = render_json(report, 'reports/audit-sitemap.json')
    print(f"Report: {report_path}")
    ```
    """
    # Приводим к Path
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # Запись в файл с отступами, Unicode и переводом строки в конце
    with output.open('w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2)
        f.write('\n')

    return output
