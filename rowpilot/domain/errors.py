"""
领域异常定义

异常分为四类:
- 配置致命: SchemaUnavailableError / ConfigurationError，启动阶段直接终止
- 单图提取失败: ModelOverloadedError / ModelRequestError，在管道内部吸收
- 单行填充失败: RowCreationTimeout / StockSearchTimeout，在引擎内部吸收
- 协作中止: BatchAbortedError / HostAbortError，终止整个批次并携带部分结果
"""

from typing import List, Optional


class RowPilotError(Exception):
    """所有项目异常的基类"""


class SchemaUnavailableError(RowPilotError):
    """Schema 未初始化或加载失败（配置致命）"""


class ConfigurationError(RowPilotError):
    """配置错误，例如引用了未注册的字段"""


class BrowserConnectionError(RowPilotError):
    """无法连接到浏览器调试端口"""


class ModelOverloadedError(RowPilotError):
    """模型服务过载（HTTP 503），可重试"""


class ModelRequestError(RowPilotError):
    """模型请求失败（非 503 的错误状态或网络异常），不重试"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RowCreationTimeout(RowPilotError):
    """等待宿主创建新行超时"""


class StockSearchTimeout(RowPilotError):
    """商品搜索在限定时间内既没有结果也没有空结果提示"""


class BatchAbortedError(RowPilotError):
    """
    批次被协作中止（外部停止标志）

    results 为中止前已完成的结果（行号或 None），即部分结果通道。
    """

    code = 'BATCH_ABORT'

    def __init__(self, message: str, results: Optional[List[Optional[int]]] = None):
        super().__init__(message)
        self.results: List[Optional[int]] = list(results or [])


class HostAbortError(BatchAbortedError):
    """批次执行期间宿主弹出阻断式对话框"""

    code = 'HOST_SIGNAL_ABORT'

    def __init__(self, message: str, results: Optional[List[Optional[int]]] = None):
        super().__init__(f"Aborted by host signal: {message}", results)
        self.host_message = message


class SessionBusyError(RowPilotError):
    """已有识别任务在运行，拒绝重复提交"""
