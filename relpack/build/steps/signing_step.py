"""
签名步骤模块

为请求的归档生成 GPG 分离签名。
"""

from ...utils.logging import info, success, error, LogStage
from relpack.build.build_context import ReleaseContext, ReleaseError, SignTarget
from relpack.build.signer import Signer
from .build_step import ReleaseStep

# 签名顺序固定，与目标集合的迭代顺序无关
SIGN_ORDER = (SignTarget.TGZ, SignTarget.ZIP, SignTarget.SOURCE)


class SigningStep(ReleaseStep):
    """签名步骤"""

    def __init__(self):
        super().__init__("sign", "GPG 签名")

    def execute(self, context: ReleaseContext) -> None:
        signer = Signer.from_config(context.config.signing)
        targets = [t for t in SIGN_ORDER if t in context.request.sign]
        info(f"GPG 签名: {', '.join(t.value for t in targets)}", stage=LogStage.SIGN)

        for i, target in enumerate(targets):
            archive = context.archive_for(target)
            if archive is None:
                raise ReleaseError(f"没有可签名的 {target.value} 归档")

            context.report("签名", i, len(targets), archive.path.name)
            try:
                context.signatures.append(signer.sign(archive.path))
            except ReleaseError as e:
                error(f"签名失败: {e}", stage=LogStage.SIGN)
                raise

        success(f"签名完成: {len(context.signatures)} 个签名文件", stage=LogStage.SIGN)
